"""Catalog, cart line and shipping domain models.

Amounts are integers in the shop's pricing unit (whole kronor).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from storefront_ledger.domain.value_objects import ShippingRegion, TaxCategory
from storefront_ledger.exceptions import InvalidLineItemError, UnknownTaxCategoryError


def _utc_now() -> datetime:
    return datetime.now(UTC)


def parse_tax_category(value: TaxCategory | str | None) -> TaxCategory | None:
    try:
        return TaxCategory.parse(value)
    except ValueError:
        raise UnknownTaxCategoryError(value) from None


@dataclass
class Product:
    """A catalog product.

    `price` is the tax-exclusive price charged while `discount_active` is set;
    otherwise `original_price` applies when present.
    """

    title: str
    price: int
    tax_category: TaxCategory | None
    id: UUID = field(default_factory=uuid4)
    original_price: int | None = None
    discount_active: bool = False
    in_stock: bool = True
    sort_order: int = 0
    description: str = ""
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.tax_category = parse_tax_category(self.tax_category)

    @property
    def effective_price(self) -> int:
        if self.discount_active:
            return self.price
        return self.original_price if self.original_price is not None else self.price


@dataclass
class LineItem:
    product_id: str
    title: str
    unit_price_ex_tax: int
    quantity: int
    tax_category: TaxCategory | None = None

    def __post_init__(self) -> None:
        self.product_id = str(self.product_id)
        self.tax_category = parse_tax_category(self.tax_category)

    def validate(self) -> None:
        if self.quantity < 1:
            raise InvalidLineItemError(self.product_id, "quantity must be at least 1")
        if self.unit_price_ex_tax < 0:
            raise InvalidLineItemError(self.product_id, "price must not be negative")

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "LineItem":
        return cls(
            product_id=str(product.id),
            title=product.title,
            unit_price_ex_tax=product.effective_price,
            quantity=quantity,
            tax_category=product.tax_category,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "title": self.title,
            "unit_price_ex_tax": self.unit_price_ex_tax,
            "quantity": self.quantity,
            "tax_category": self.tax_category.value if self.tax_category else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineItem":
        return cls(
            product_id=data["product_id"],
            title=data["title"],
            unit_price_ex_tax=int(data["unit_price_ex_tax"]),
            quantity=int(data["quantity"]),
            tax_category=data.get("tax_category"),
        )


@dataclass(frozen=True, slots=True)
class ShippingSelection:
    """The chosen delivery method. `price` is entered gross."""

    option_id: str
    name: str
    region: ShippingRegion
    price: int

    def __post_init__(self) -> None:
        if not isinstance(self.region, ShippingRegion):
            object.__setattr__(self, "region", ShippingRegion(self.region))


DEFAULT_SHIPPING_OPTIONS: tuple[ShippingSelection, ...] = (
    ShippingSelection("sweden", "Inom Sverige", ShippingRegion.DOMESTIC, 39),
    ShippingSelection("europe", "Europa (utanför Sverige)", ShippingRegion.EU, 100),
    ShippingSelection("world", "Utanför Europa", ShippingRegion.NON_EU, 100),
)


__all__ = [
    "DEFAULT_SHIPPING_OPTIONS",
    "LineItem",
    "parse_tax_category",
    "Product",
    "ShippingSelection",
]
