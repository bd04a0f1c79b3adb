from enum import Enum


class TaxCategory(str, Enum):
    BOOK = "book"
    MERCHANDISE = "merchandise"

    @classmethod
    def parse(cls, value: "TaxCategory | str | None") -> "TaxCategory | None":
        """Parse a stored category, keeping None for legacy rows.

        Unknown strings raise ValueError instead of falling back to a rate.
        """
        if value is None or isinstance(value, TaxCategory):
            return value
        return cls(value)


class ShippingRegion(str, Enum):
    DOMESTIC = "domestic"
    EU = "eu"
    NON_EU = "non-eu"

    @classmethod
    def _missing_(cls, value: object) -> "ShippingRegion | None":
        # Orders placed before the rename stored the domestic region as "sweden".
        if value == "sweden":
            return cls.DOMESTIC
        return None


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"


__all__ = [
    "OrderStatus",
    "ShippingRegion",
    "TaxCategory",
]
