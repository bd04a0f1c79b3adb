"""Accounting reconciliation of settled orders against processor fees.

Rows are recomputed from each order's persisted gross lines on every
request and never stored. Amounts are in öre.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from zoneinfo import ZoneInfo

from storefront_ledger.domain.orders import (
    AccountingReport,
    AccountingRow,
    AccountingTotals,
    Order,
    OrderLine,
)
from storefront_ledger.domain.value_objects import OrderStatus
from storefront_ledger.exceptions import GatewayError, StorefrontLedgerError
from storefront_ledger.logging_config import get_logger
from storefront_ledger.repositories.interfaces import OrderRepository
from storefront_ledger.services.formatting import format_minor
from storefront_ledger.services.interfaces import AccountingService, PaymentGateway
from storefront_ledger.services.pricing import PricingServiceImpl
from storefront_ledger.services.vat import ZERO_RATE, percent_label, round_half_up

logger = get_logger(__name__)

FEE_PENDING_LABEL = "avgift saknas"


class FeeLookup:
    """Fetches processor fees for many transactions at once.

    Lookups run concurrently; a failure for one transaction leaves it out
    of the result instead of failing the batch.
    """

    def __init__(self, gateway: PaymentGateway, max_workers: int = 8) -> None:
        self._gateway = gateway
        self._max_workers = max_workers

    def fetch_fees(self, transaction_ids: Iterable[str]) -> dict[str, int]:
        unique_ids = list(dict.fromkeys(tid for tid in transaction_ids if tid))
        if not unique_ids:
            return {}

        fees: dict[str, int] = {}
        workers = min(self._max_workers, len(unique_ids))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = pool.map(self._fetch_one, unique_ids)
            for transaction_id, fee in zip(unique_ids, results):
                if fee is not None:
                    fees[transaction_id] = fee

        logger.info(
            "fees_fetched",
            requested=len(unique_ids),
            found=len(fees),
        )
        return fees

    def _fetch_one(self, transaction_id: str) -> int | None:
        try:
            return self._gateway.get_transaction_fee(transaction_id)
        except GatewayError as exc:
            logger.warning(
                "fee_lookup_failed",
                transaction_id=transaction_id,
                error_code=exc.error_code,
                message=exc.message,
            )
            return None
        except Exception:
            logger.exception("fee_lookup_crashed", transaction_id=transaction_id)
            return None


class AccountingServiceImpl(AccountingService):
    def __init__(
        self,
        order_repo: OrderRepository,
        pricing: PricingServiceImpl,
        fee_lookup: FeeLookup | None = None,
        minor_units_per_unit: int = 100,
        currency: str = "SEK",
        timezone: str = "Europe/Stockholm",
    ) -> None:
        self._order_repo = order_repo
        self._pricing = pricing
        self._fee_lookup = fee_lookup
        self._minor = minor_units_per_unit
        self._currency = currency
        self._tz = ZoneInfo(timezone)

    def order_date(self, order: Order) -> date:
        return order.created_at.astimezone(self._tz).date()

    def build_row(self, order: Order, fees: dict[str, int]) -> AccountingRow:
        rates = self._pricing.rates
        lines = [
            OrderLine(
                product_id=line.product_id,
                title=line.title,
                unit_price=line.unit_price * self._minor,
                quantity=line.quantity,
                tax_category=line.tax_category,
            )
            for line in order.items
        ]
        if order.shipping is not None:
            shipping_gross = order.shipping.price * self._minor
            shipping_rate = order.shipping.tax_rate
        else:
            shipping_gross, shipping_rate = 0, ZERO_RATE

        result = self._pricing.price_gross_lines(
            lines,
            shipping_gross=shipping_gross,
            shipping_rate=shipping_rate,
            discount_amount=order.discount_amount,
        )

        reduced_tax = result.bucket(rates.reduced).tax
        standard_tax = result.bucket(rates.standard).tax
        # The discount comes off the aggregate; spread its tax share over the
        # rate columns in proportion so they still add up to the total tax.
        discount_tax = reduced_tax + standard_tax - result.products.amounts.tax
        if discount_tax and reduced_tax + standard_tax:
            reduced_share = round_half_up(
                Decimal(discount_tax) * reduced_tax / (reduced_tax + standard_tax)
            )
            reduced_tax -= reduced_share
            standard_tax -= discount_tax - reduced_share

        if result.shipping.rate == rates.reduced:
            reduced_tax += result.shipping.amounts.tax
        else:
            standard_tax += result.shipping.amounts.tax

        # The stored total is what the gateway charged and is what gets booked.
        amount_inc_tax = order.total_amount
        if result.total.inc_tax != amount_inc_tax:
            logger.warning(
                "accounting_total_mismatch",
                order_id=str(order.id),
                recomputed=result.total.inc_tax,
                charged=amount_inc_tax,
            )

        fee = fees.get(order.transaction_id or "")
        return AccountingRow(
            order_id=order.id,
            order_number=order.order_number,
            date=self.order_date(order),
            customer=order.email,
            products=order.product_summary(),
            amount_ex_tax=result.total.ex_tax,
            reduced_tax=reduced_tax,
            standard_tax=standard_tax,
            amount_inc_tax=amount_inc_tax,
            processor_fee=fee if fee is not None else 0,
            fee_pending=fee is None,
        )

    def build_rows(
        self, orders: Iterable[Order], fees: dict[str, int]
    ) -> list[AccountingRow]:
        return [
            self.build_row(order, fees)
            for order in orders
            if order.status == OrderStatus.COMPLETED and order.transaction_id
        ]

    def report(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        include_fees: bool = True,
    ) -> AccountingReport:
        """Accounting rows for completed orders within an inclusive date range.

        With include_fees=False no fee lookup is made and every row is
        fee-pending; callers show this first and refresh with fees.
        """
        if date_from and date_to and date_from > date_to:
            raise StorefrontLedgerError(
                "Från-datum måste vara före till-datum",
                error_code="INVALID_DATE_RANGE",
                status_code=400,
                context={"date_from": date_from.isoformat(), "date_to": date_to.isoformat()},
            )

        orders = [
            order
            for order in self._order_repo.list_completed_orders_with_transaction_ids()
            if self._in_range(order, date_from, date_to)
        ]

        fees: dict[str, int] = {}
        fees_included = include_fees and self._fee_lookup is not None
        if fees_included:
            fees = self._fee_lookup.fetch_fees(o.transaction_id for o in orders)

        rows = self.build_rows(orders, fees)
        totals = AccountingTotals.from_rows(rows)
        logger.info(
            "accounting_report_built",
            orders=totals.order_count,
            fee_pending=totals.fee_pending_count,
            amount_inc_tax=totals.amount_inc_tax,
        )
        return AccountingReport(
            rows=rows,
            totals=totals,
            date_from=date_from,
            date_to=date_to,
            fees_included=fees_included,
        )

    def export_csv(self, report: AccountingReport) -> bytes:
        """Semicolon-separated, decimal comma, UTF-8 with BOM."""
        rates = self._pricing.rates
        cur = self._currency
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
        writer.writerow(
            [
                "Ordernummer",
                "Datum",
                "Kund",
                "Produkter",
                f"Belopp exkl. moms ({cur})",
                f"Moms {percent_label(rates.reduced)}% ({cur})",
                f"Moms {percent_label(rates.standard)}% ({cur})",
                f"Total moms ({cur})",
                f"Belopp inkl. moms ({cur})",
                f"Betalavgift ({cur})",
                f"Nettoutbetalning ({cur})",
            ]
        )
        for row in report.rows:
            writer.writerow(
                [
                    row.order_number,
                    row.date.isoformat(),
                    row.customer,
                    row.products,
                    *self._amounts(
                        row.amount_ex_tax,
                        row.reduced_tax,
                        row.standard_tax,
                        row.total_tax,
                        row.amount_inc_tax,
                    ),
                    FEE_PENDING_LABEL if row.fee_pending else self._fmt(row.processor_fee),
                    self._fmt(row.net_payout),
                ]
            )

        totals = report.totals
        pending_note = (
            f"{totals.fee_pending_count} {FEE_PENDING_LABEL}"
            if totals.fee_pending_count
            else ""
        )
        writer.writerow(
            [
                "TOTALT",
                "",
                f"{totals.order_count} ordrar",
                pending_note,
                *self._amounts(
                    totals.amount_ex_tax,
                    totals.reduced_tax,
                    totals.standard_tax,
                    totals.total_tax,
                    totals.amount_inc_tax,
                ),
                self._fmt(totals.processor_fee),
                self._fmt(totals.net_payout),
            ]
        )
        return buffer.getvalue().encode("utf-8-sig")

    def _fmt(self, amount: int) -> str:
        return format_minor(amount, self._minor)

    def _amounts(self, *amounts: int) -> Sequence[str]:
        return [self._fmt(amount) for amount in amounts]

    def _in_range(
        self, order: Order, date_from: date | None, date_to: date | None
    ) -> bool:
        order_day = self.order_date(order)
        if date_from and order_day < date_from:
            return False
        if date_to and order_day > date_to:
            return False
        return True
