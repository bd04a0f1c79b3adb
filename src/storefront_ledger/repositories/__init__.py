from storefront_ledger.repositories.cart_file import (
    InMemoryCartRepository,
    JSONFileCartRepository,
)
from storefront_ledger.repositories.interfaces import (
    CartRepository,
    CatalogRepository,
    OrderRepository,
)
from storefront_ledger.repositories.sqlite import (
    SQLiteCatalogRepository,
    SQLiteDatabase,
    SQLiteOrderRepository,
)

__all__ = [
    "CartRepository",
    "CatalogRepository",
    "OrderRepository",
    "InMemoryCartRepository",
    "JSONFileCartRepository",
    "SQLiteCatalogRepository",
    "SQLiteDatabase",
    "SQLiteOrderRepository",
]
