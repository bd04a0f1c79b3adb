"""VAT rates and rounding shared by every pricing path.

Every component asks `VatRates.rate_for` for a line's rate and uses
`split_gross` to back the tax out of a gross amount; nothing else in the
package multiplies by a VAT rate.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Protocol

from storefront_ledger.domain.pricing import TaxBreakdownBucket
from storefront_ledger.domain.value_objects import ShippingRegion, TaxCategory
from storefront_ledger.exceptions import UnknownTaxCategoryError

if TYPE_CHECKING:
    from storefront_ledger.config import Settings

ZERO_RATE = Decimal("0")


class TaxedQuantity(Protocol):
    tax_category: TaxCategory | None
    quantity: int


def round_half_up(value: Decimal | int) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def gross_unit_price(unit_price_ex_tax: int, rate: Decimal) -> int:
    """Customer-visible unit price, always a whole unit."""
    return round_half_up(Decimal(unit_price_ex_tax) * (1 + rate))


def split_gross(gross: int, rate: Decimal) -> TaxBreakdownBucket:
    """Back the exclusive amount and tax out of a gross amount.

    A zero rate leaves the whole gross as the exclusive amount.
    """
    if rate == ZERO_RATE:
        return TaxBreakdownBucket.of(gross, 0)
    ex_tax = round_half_up(Decimal(gross) / (1 + rate))
    return TaxBreakdownBucket.of(ex_tax, gross - ex_tax)


@dataclass(frozen=True, slots=True)
class VatRates:
    reduced: Decimal = Decimal("0.06")
    standard: Decimal = Decimal("0.25")

    @classmethod
    def from_settings(cls, settings: Settings) -> VatRates:
        return cls(reduced=settings.reduced_vat_rate, standard=settings.standard_vat_rate)

    def rate_for(self, category: TaxCategory | str | None) -> Decimal:
        """Return the VAT rate for a tax category.

        A missing category is a legacy record and takes the reduced rate.
        Anything that is not a known category raises.
        """
        if category is None:
            return self.reduced
        if category == TaxCategory.BOOK:
            return self.reduced
        if category == TaxCategory.MERCHANDISE:
            return self.standard
        raise UnknownTaxCategoryError(category)

    def shipping_rate_for(
        self, items: Iterable[TaxedQuantity], region: ShippingRegion
    ) -> Decimal:
        """Shipping follows the cart: export is exempt, otherwise the
        category with strictly more items wins and a tie takes the reduced rate.
        """
        if region == ShippingRegion.NON_EU:
            return ZERO_RATE

        reduced_quantity = 0
        standard_quantity = 0
        for item in items:
            if self.rate_for(item.tax_category) == self.reduced:
                reduced_quantity += item.quantity
            else:
                standard_quantity += item.quantity

        if standard_quantity > reduced_quantity:
            return self.standard
        return self.reduced


DEFAULT_RATES = VatRates()


def vat_rate_for(
    category: TaxCategory | str | None, rates: VatRates = DEFAULT_RATES
) -> Decimal:
    return rates.rate_for(category)


def percent_label(rate: Decimal) -> str:
    """25 for Decimal("0.25")."""
    return str(round_half_up(rate * 100))
