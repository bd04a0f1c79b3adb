from storefront_ledger.domain.catalog import LineItem, Product, ShippingSelection
from storefront_ledger.domain.orders import AccountingRow, Order, OrderLine
from storefront_ledger.domain.pricing import OrderPricingResult, TaxBreakdownBucket
from storefront_ledger.domain.value_objects import (
    OrderStatus,
    ShippingRegion,
    TaxCategory,
)

__all__ = [
    "AccountingRow",
    "LineItem",
    "Order",
    "OrderLine",
    "OrderPricingResult",
    "OrderStatus",
    "Product",
    "ShippingRegion",
    "ShippingSelection",
    "TaxBreakdownBucket",
    "TaxCategory",
]

__version__ = "0.1.0"
