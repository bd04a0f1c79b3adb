"""Value objects describing a priced order.

All amounts are integers; `inc_tax == ex_tax + tax` holds for every bucket.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass(frozen=True, slots=True)
class TaxBreakdownBucket:
    ex_tax: int = 0
    tax: int = 0
    inc_tax: int = 0

    def __post_init__(self) -> None:
        if self.inc_tax != self.ex_tax + self.tax:
            raise ValueError(
                f"Unbalanced bucket: {self.ex_tax} + {self.tax} != {self.inc_tax}"
            )

    @classmethod
    def of(cls, ex_tax: int, tax: int) -> "TaxBreakdownBucket":
        return cls(ex_tax, tax, ex_tax + tax)

    @classmethod
    def zero(cls) -> "TaxBreakdownBucket":
        return cls()

    def __add__(self, other: "TaxBreakdownBucket") -> "TaxBreakdownBucket":
        return TaxBreakdownBucket.of(self.ex_tax + other.ex_tax, self.tax + other.tax)

    @property
    def is_zero(self) -> bool:
        return self.inc_tax == 0 and self.ex_tax == 0

    def to_dict(self) -> dict[str, int]:
        return {"ex_tax": self.ex_tax, "tax": self.tax, "inc_tax": self.inc_tax}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaxBreakdownBucket":
        return cls(int(data["ex_tax"]), int(data["tax"]), int(data["inc_tax"]))


@dataclass(frozen=True, slots=True)
class ProductsAggregate:
    """Product lines after the order discount.

    `original_inc_tax` is the gross before the discount was taken off.
    """

    amounts: TaxBreakdownBucket
    original_inc_tax: int
    discount: int


@dataclass(frozen=True, slots=True)
class ShippingAggregate:
    amounts: TaxBreakdownBucket
    rate: Decimal


@dataclass(frozen=True, slots=True)
class OrderTotal:
    ex_tax: int
    tax: int
    inc_tax: int
    rounding_adjustment: int

    def __post_init__(self) -> None:
        if self.inc_tax != self.ex_tax + self.tax + self.rounding_adjustment:
            raise ValueError("Total does not reconcile with its rounding adjustment")


@dataclass(frozen=True)
class OrderPricingResult:
    """The canonical tax record of one order.

    `rates` holds the product buckets per VAT rate before the order discount;
    the discount is taken off the aggregate in `products`.
    """

    rates: dict[Decimal, TaxBreakdownBucket]
    products: ProductsAggregate
    shipping: ShippingAggregate
    total: OrderTotal
    discount_percent: int = 0

    @property
    def discount(self) -> int:
        return self.products.discount

    def bucket(self, rate: Decimal) -> TaxBreakdownBucket:
        return self.rates.get(rate, TaxBreakdownBucket.zero())

    def to_dict(self) -> dict[str, Any]:
        return {
            "rates": {str(rate): b.to_dict() for rate, b in sorted(self.rates.items())},
            "products": {
                **self.products.amounts.to_dict(),
                "original_inc_tax": self.products.original_inc_tax,
                "discount": self.products.discount,
            },
            "shipping": {
                **self.shipping.amounts.to_dict(),
                "rate": str(self.shipping.rate),
            },
            "total": {
                "ex_tax": self.total.ex_tax,
                "tax": self.total.tax,
                "inc_tax": self.total.inc_tax,
                "rounding_adjustment": self.total.rounding_adjustment,
            },
            "discount_percent": self.discount_percent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderPricingResult":
        products = data["products"]
        shipping = data["shipping"]
        total = data["total"]
        return cls(
            rates={
                Decimal(rate): TaxBreakdownBucket.from_dict(bucket)
                for rate, bucket in data["rates"].items()
            },
            products=ProductsAggregate(
                amounts=TaxBreakdownBucket.from_dict(products),
                original_inc_tax=int(products["original_inc_tax"]),
                discount=int(products["discount"]),
            ),
            shipping=ShippingAggregate(
                amounts=TaxBreakdownBucket.from_dict(shipping),
                rate=Decimal(shipping["rate"]),
            ),
            total=OrderTotal(
                ex_tax=int(total["ex_tax"]),
                tax=int(total["tax"]),
                inc_tax=int(total["inc_tax"]),
                rounding_adjustment=int(total["rounding_adjustment"]),
            ),
            discount_percent=int(data.get("discount_percent", 0)),
        )


__all__ = [
    "OrderPricingResult",
    "OrderTotal",
    "ProductsAggregate",
    "ShippingAggregate",
    "TaxBreakdownBucket",
]
