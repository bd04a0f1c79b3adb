from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from uuid import UUID

from storefront_ledger.domain.catalog import LineItem, Product
from storefront_ledger.domain.orders import Order


class CatalogRepository(ABC):
    @abstractmethod
    def add(self, product: Product) -> None:
        pass

    @abstractmethod
    def get(self, product_id: UUID) -> Product | None:
        pass

    @abstractmethod
    def update(self, product: Product) -> None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Product]:
        pass

    @abstractmethod
    def list_in_stock_products(self) -> list[Product]:
        """In-stock products in display order."""
        pass


class OrderRepository(ABC):
    @abstractmethod
    def insert_pending_order(self, order: Order) -> None:
        pass

    @abstractmethod
    def get(self, order_id: UUID) -> Order | None:
        pass

    @abstractmethod
    def get_by_session_id(self, session_id: str) -> Order | None:
        pass

    @abstractmethod
    def attach_session(self, order_id: UUID, session_id: str) -> None:
        pass

    @abstractmethod
    def update(self, order: Order) -> None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Order]:
        pass

    @abstractmethod
    def list_completed_orders_with_transaction_ids(self) -> list[Order]:
        """Completed orders carrying a processor transaction id, newest first."""
        pass


class CartRepository(ABC):
    @abstractmethod
    def load(self) -> list[LineItem]:
        pass

    @abstractmethod
    def save(self, items: Sequence[LineItem]) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass
