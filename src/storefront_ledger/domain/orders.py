"""Order and accounting domain models."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID, uuid4

from storefront_ledger.domain.catalog import parse_tax_category
from storefront_ledger.domain.pricing import OrderPricingResult
from storefront_ledger.domain.value_objects import OrderStatus, ShippingRegion, TaxCategory
from storefront_ledger.exceptions import InvalidOrderTransitionError


def _utc_now() -> datetime:
    return datetime.now(UTC)


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.COMPLETED, OrderStatus.FAILED, OrderStatus.CANCELED}
    ),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.FAILED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}


@dataclass
class OrderLine:
    """A persisted order line. `unit_price` is gross, in whole kronor."""

    product_id: str
    title: str
    unit_price: int
    quantity: int
    tax_category: TaxCategory | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "title": self.title,
            "price": self.unit_price,
            "quantity": self.quantity,
            "category": self.tax_category.value if self.tax_category else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderLine":
        return cls(
            product_id=str(data.get("product_id") or data.get("id", "")),
            title=data["title"],
            unit_price=int(data["price"]),
            quantity=int(data["quantity"]),
            tax_category=parse_tax_category(data.get("category")),
        )


@dataclass
class OrderShipping:
    """Persisted shipping metadata. `price` is gross, in whole kronor."""

    option_id: str
    name: str
    region: ShippingRegion
    price: int
    price_ex_tax: int
    tax_rate: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "option_id": self.option_id,
            "name": self.name,
            "region": self.region.value,
            "price_inc_vat": self.price,
            "price_ex_vat": self.price_ex_tax,
            "vat_rate": str(self.tax_rate),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderShipping":
        tax_rate = Decimal(str(data.get("vat_rate", "0")))
        price_ex_tax = int(data.get("price_ex_vat", 0))
        price = data.get("price_inc_vat")
        if price is None:
            # Older orders only stored the exclusive price.
            price = price_ex_tax + int(
                (Decimal(price_ex_tax) * tax_rate).to_integral_value(ROUND_HALF_UP)
            )
        return cls(
            option_id=data.get("option_id", ""),
            name=data.get("name", ""),
            region=ShippingRegion(data.get("region", ShippingRegion.DOMESTIC.value)),
            price=int(price),
            price_ex_tax=price_ex_tax,
            tax_rate=tax_rate,
        )


@dataclass
class Order:
    """A submitted order.

    `total_amount` and `discount_amount` are in öre, as charged by the gateway.
    """

    email: str
    items: list[OrderLine]
    shipping: OrderShipping | None
    total_amount: int
    id: UUID = field(default_factory=uuid4)
    discount_amount: int = 0
    discount_code: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    session_id: str | None = None
    transaction_id: str | None = None
    pricing: OrderPricingResult | None = None
    newsletter_optin: bool = False
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def order_number(self) -> str:
        return str(self.id)[:8]

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, status: OrderStatus) -> None:
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidOrderTransitionError(self.id, self.status.value, status.value)
        self.status = status
        self.updated_at = _utc_now()

    def product_summary(self) -> str:
        return ", ".join(f"{line.title} ({line.quantity}st)" for line in self.items)


@dataclass(frozen=True, slots=True)
class AccountingRow:
    """One bookkeeping line for a settled order, amounts in öre.

    `fee_pending` marks rows whose processor fee was unavailable, so a zero
    fee there is not mistaken for a settled zero fee.
    """

    order_id: UUID
    order_number: str
    date: date
    customer: str
    products: str
    amount_ex_tax: int
    reduced_tax: int
    standard_tax: int
    amount_inc_tax: int
    processor_fee: int = 0
    fee_pending: bool = False

    @property
    def total_tax(self) -> int:
        return self.reduced_tax + self.standard_tax

    @property
    def net_payout(self) -> int:
        return self.amount_inc_tax - self.processor_fee


@dataclass(frozen=True, slots=True)
class AccountingTotals:
    amount_ex_tax: int = 0
    reduced_tax: int = 0
    standard_tax: int = 0
    total_tax: int = 0
    amount_inc_tax: int = 0
    processor_fee: int = 0
    net_payout: int = 0
    order_count: int = 0
    fee_pending_count: int = 0

    @classmethod
    def from_rows(cls, rows: list[AccountingRow]) -> "AccountingTotals":
        return cls(
            amount_ex_tax=sum(r.amount_ex_tax for r in rows),
            reduced_tax=sum(r.reduced_tax for r in rows),
            standard_tax=sum(r.standard_tax for r in rows),
            total_tax=sum(r.total_tax for r in rows),
            amount_inc_tax=sum(r.amount_inc_tax for r in rows),
            processor_fee=sum(r.processor_fee for r in rows),
            net_payout=sum(r.net_payout for r in rows),
            order_count=len(rows),
            fee_pending_count=sum(1 for r in rows if r.fee_pending),
        )


@dataclass
class AccountingReport:
    rows: list[AccountingRow]
    totals: AccountingTotals
    date_from: date | None = None
    date_to: date | None = None
    fees_included: bool = True

    @property
    def filename(self) -> str:
        if self.date_from and self.date_to:
            return f"bokforing_{self.date_from.isoformat()}_till_{self.date_to.isoformat()}.csv"
        return f"bokforing_{date.today().isoformat()}.csv"
