"""Swedish-locale amount formatting and the plain-text VAT specification."""

from decimal import Decimal

from storefront_ledger.domain.pricing import OrderPricingResult
from storefront_ledger.services.vat import DEFAULT_RATES, VatRates, percent_label


def format_minor(amount: int, minor_units_per_unit: int = 100, decimal_sep: str = ",") -> str:
    """Format an amount in minor units with two decimals, e.g. 13900 -> '139,00'."""
    value = (Decimal(amount) / minor_units_per_unit).quantize(Decimal("0.01"))
    return f"{value:.2f}".replace(".", decimal_sep)


def format_kronor(amount: int) -> str:
    return f"{amount} kr"


def vat_specification(
    result: OrderPricingResult, rates: VatRates = DEFAULT_RATES
) -> list[str]:
    """Receipt lines breaking an order down per VAT rate."""
    lines: list[str] = []
    reduced = result.bucket(rates.reduced)
    standard = result.bucket(rates.standard)

    if reduced.inc_tax > 0:
        lines.append(
            f"Böcker ({percent_label(rates.reduced)}% moms): "
            f"{format_kronor(reduced.ex_tax)} + {format_kronor(reduced.tax)} moms "
            f"= {format_kronor(reduced.inc_tax)}"
        )
    if standard.inc_tax > 0:
        lines.append(
            f"Övrigt ({percent_label(rates.standard)}% moms): "
            f"{format_kronor(standard.ex_tax)} + {format_kronor(standard.tax)} moms "
            f"= {format_kronor(standard.inc_tax)}"
        )
    if result.discount:
        lines.append(f"Rabatt ({result.discount_percent}%): -{format_kronor(result.discount)}")

    shipping = result.shipping.amounts
    if shipping.inc_tax > 0:
        if result.shipping.rate == 0:
            lines.append(f"Frakt: {format_kronor(shipping.inc_tax)} (momsfri export)")
        else:
            lines.append(
                f"Frakt: {format_kronor(shipping.ex_tax)} + {format_kronor(shipping.tax)} "
                f"moms ({percent_label(result.shipping.rate)}%) "
                f"= {format_kronor(shipping.inc_tax)}"
            )

    if result.total.rounding_adjustment:
        lines.append(f"Öresutjämning: {format_kronor(result.total.rounding_adjustment)}")

    lines.append(f"Totalt exkl. moms: {format_kronor(result.total.ex_tax)}")
    lines.append(f"Totalt moms: {format_kronor(result.total.tax)}")
    lines.append(f"Totalt inkl. moms: {format_kronor(result.total.inc_tax)}")
    return lines
