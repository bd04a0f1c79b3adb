"""Cart pricing: turns line items into a VAT-correct order breakdown."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal

from storefront_ledger.domain.catalog import LineItem, ShippingSelection
from storefront_ledger.domain.orders import OrderLine
from storefront_ledger.domain.pricing import (
    OrderPricingResult,
    OrderTotal,
    ProductsAggregate,
    ShippingAggregate,
    TaxBreakdownBucket,
)
from storefront_ledger.exceptions import InvalidDiscountCodeError, InvalidDiscountError
from storefront_ledger.logging_config import get_logger
from storefront_ledger.services.interfaces import PricingService
from storefront_ledger.services.vat import (
    DEFAULT_RATES,
    VatRates,
    gross_unit_price,
    round_half_up,
    split_gross,
)

logger = get_logger(__name__)


class PricingServiceImpl(PricingService):
    """Prices carts and re-prices persisted gross lines.

    Each line's gross is fixed first (whole units per item) and the tax is
    backed out of it. A discount comes off the product aggregate, not the
    individual rate buckets.
    """

    def __init__(
        self,
        rates: VatRates = DEFAULT_RATES,
        discount_codes: Mapping[str, int] | None = None,
    ) -> None:
        self._rates = rates
        self._discount_codes = {
            code.casefold(): percent for code, percent in (discount_codes or {}).items()
        }

    @property
    def rates(self) -> VatRates:
        return self._rates

    def price_cart(
        self,
        items: Sequence[LineItem],
        shipping: ShippingSelection | None,
        discount_percent: int | Decimal = 0,
    ) -> OrderPricingResult:
        if not 0 <= discount_percent <= 100:
            raise InvalidDiscountError(discount_percent)

        lines: list[tuple[int, Decimal]] = []
        for item in items:
            item.validate()
            rate = self._rates.rate_for(item.tax_category)
            lines.append((gross_unit_price(item.unit_price_ex_tax, rate) * item.quantity, rate))

        products_gross = sum(gross for gross, _ in lines)
        discount = round_half_up(Decimal(products_gross) * Decimal(discount_percent) / 100)

        # Nothing to ship for an empty cart.
        shipping_gross = shipping.price if shipping is not None and items else 0
        if shipping is not None:
            shipping_rate = self._rates.shipping_rate_for(items, shipping.region)
        else:
            shipping_rate = self._rates.reduced

        result = self._build(
            lines,
            shipping_gross=shipping_gross,
            shipping_rate=shipping_rate,
            discount=discount,
            discount_percent=int(discount_percent),
        )
        logger.debug(
            "cart_priced",
            items=len(items),
            discount_percent=str(discount_percent),
            shipping_rate=str(shipping_rate),
            total=result.total.inc_tax,
        )
        return result

    def price_gross_lines(
        self,
        lines: Sequence[OrderLine],
        shipping_gross: int,
        shipping_rate: Decimal,
        discount_amount: int = 0,
    ) -> OrderPricingResult:
        """Rebuild a breakdown from lines whose unit prices are already gross."""
        gross_lines = [
            (line.unit_price * line.quantity, self._rates.rate_for(line.tax_category))
            for line in lines
        ]
        return self._build(
            gross_lines,
            shipping_gross=shipping_gross,
            shipping_rate=shipping_rate,
            discount=discount_amount,
        )

    def resolve_discount_code(self, code: str | None) -> int:
        """Percentage for a discount code; no code means no discount."""
        if not code or not code.strip():
            return 0
        try:
            return self._discount_codes[code.strip().casefold()]
        except KeyError:
            raise InvalidDiscountCodeError(code) from None

    def _build(
        self,
        lines: Sequence[tuple[int, Decimal]],
        shipping_gross: int,
        shipping_rate: Decimal,
        discount: int,
        discount_percent: int = 0,
    ) -> OrderPricingResult:
        rates: dict[Decimal, TaxBreakdownBucket] = {
            self._rates.reduced: TaxBreakdownBucket.zero(),
            self._rates.standard: TaxBreakdownBucket.zero(),
        }
        for gross, rate in lines:
            rates[rate] = rates.get(rate, TaxBreakdownBucket.zero()) + split_gross(gross, rate)

        products = TaxBreakdownBucket.zero()
        for bucket in rates.values():
            products += bucket

        discounted_gross = products.inc_tax - discount
        if products.inc_tax > 0:
            discounted_ex = products.ex_tax - round_half_up(
                Decimal(products.ex_tax) * discount / products.inc_tax
            )
        else:
            discounted_ex = 0
        discounted = TaxBreakdownBucket.of(discounted_ex, discounted_gross - discounted_ex)

        shipping = split_gross(shipping_gross, shipping_rate)

        ex_tax = discounted.ex_tax + shipping.ex_tax
        tax = discounted.tax + shipping.tax
        raw_total = ex_tax + tax
        inc_tax = round_half_up(raw_total)

        return OrderPricingResult(
            rates=rates,
            products=ProductsAggregate(
                amounts=discounted,
                original_inc_tax=products.inc_tax,
                discount=discount,
            ),
            shipping=ShippingAggregate(amounts=shipping, rate=shipping_rate),
            total=OrderTotal(
                ex_tax=ex_tax,
                tax=tax,
                inc_tax=inc_tax,
                rounding_adjustment=inc_tax - raw_total,
            ),
            discount_percent=discount_percent,
        )
