from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from storefront_ledger.domain.catalog import LineItem, Product, ShippingSelection
from storefront_ledger.domain.orders import (
    AccountingReport,
    AccountingRow,
    Order,
    OrderLine,
)
from storefront_ledger.domain.pricing import OrderPricingResult


@dataclass(frozen=True, slots=True)
class GatewayLineItem:
    """A line as the payment gateway charges it: gross unit amount in öre."""

    name: str
    unit_amount: int
    quantity: int


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    redirect_url: str
    session_id: str


@dataclass
class CheckoutResult:
    redirect_url: str
    session_id: str
    order_id: UUID | None
    pricing: OrderPricingResult
    warnings: list[str] = field(default_factory=list)


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        line_items: Sequence[GatewayLineItem],
        metadata: dict[str, str],
        customer_email: str | None = None,
        discount_amount: int = 0,
    ) -> CheckoutSession:
        """Open a hosted checkout; `discount_amount` (öre) comes off the charge."""
        pass

    @abstractmethod
    def get_transaction_fee(self, transaction_id: str) -> int | None:
        """Processor fee in öre, or None when the gateway has none yet."""
        pass


class PricingService(ABC):
    @abstractmethod
    def price_cart(
        self,
        items: Sequence[LineItem],
        shipping: ShippingSelection | None,
        discount_percent: int | Decimal = 0,
    ) -> OrderPricingResult:
        pass

    @abstractmethod
    def price_gross_lines(
        self,
        lines: Sequence[OrderLine],
        shipping_gross: int,
        shipping_rate: Decimal,
        discount_amount: int = 0,
    ) -> OrderPricingResult:
        pass

    @abstractmethod
    def resolve_discount_code(self, code: str | None) -> int:
        pass


class CartService(ABC):
    @abstractmethod
    def items(self) -> list[LineItem]:
        pass

    @abstractmethod
    def add_product(self, product_id: str, quantity: int = 1) -> list[LineItem]:
        pass

    @abstractmethod
    def set_quantity(self, product_id: str, quantity: int) -> list[LineItem]:
        pass

    @abstractmethod
    def remove(self, product_id: str) -> list[LineItem]:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class CheckoutService(ABC):
    @abstractmethod
    def submit(
        self,
        items: Sequence[LineItem],
        shipping: ShippingSelection,
        discount_code: str | None = None,
        email: str | None = None,
        newsletter_optin: bool = False,
    ) -> CheckoutResult:
        pass


class OrderService(ABC):
    @abstractmethod
    def complete(
        self, session_id: str, transaction_id: str, email: str | None = None
    ) -> Order:
        pass

    @abstractmethod
    def fail(self, session_id: str) -> Order:
        pass

    @abstractmethod
    def cancel(self, session_id: str) -> Order:
        pass


class AccountingService(ABC):
    @abstractmethod
    def build_row(self, order: Order, fees: dict[str, int]) -> AccountingRow:
        pass

    @abstractmethod
    def build_rows(
        self, orders: Iterable[Order], fees: dict[str, int]
    ) -> list[AccountingRow]:
        pass

    @abstractmethod
    def report(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        include_fees: bool = True,
    ) -> AccountingReport:
        pass

    @abstractmethod
    def export_csv(self, report: AccountingReport) -> bytes:
        pass


class CatalogService(ABC):
    @abstractmethod
    def list_in_stock(self) -> list[Product]:
        pass

    @abstractmethod
    def add_product(self, product: Product) -> Product:
        pass

    @abstractmethod
    def get_product(self, product_id: str) -> Product:
        pass
