"""Checkout submission: prices the cart, records a pending order and opens
a hosted checkout session at the payment gateway.

The order written here is only ever `pending`; settlement is confirmed
asynchronously by the gateway and recorded through OrderService.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from storefront_ledger.domain.catalog import LineItem, ShippingSelection
from storefront_ledger.domain.orders import Order, OrderLine, OrderShipping
from storefront_ledger.domain.pricing import OrderPricingResult
from storefront_ledger.exceptions import GatewayError, InvalidCartStateError
from storefront_ledger.logging_config import LogContext, get_logger
from storefront_ledger.repositories.interfaces import OrderRepository
from storefront_ledger.services.interfaces import (
    CheckoutResult,
    CheckoutService,
    GatewayLineItem,
    PaymentGateway,
)
from storefront_ledger.services.pricing import PricingServiceImpl
from storefront_ledger.services.vat import gross_unit_price, percent_label

logger = get_logger(__name__)

PLACEHOLDER_EMAIL = "pending@checkout.temp"


class CheckoutServiceImpl(CheckoutService):
    def __init__(
        self,
        pricing: PricingServiceImpl,
        gateway: PaymentGateway,
        order_repo: OrderRepository,
        minor_units_per_unit: int = 100,
    ) -> None:
        self._pricing = pricing
        self._gateway = gateway
        self._order_repo = order_repo
        self._minor = minor_units_per_unit

    def submit(
        self,
        items: Sequence[LineItem],
        shipping: ShippingSelection,
        discount_code: str | None = None,
        email: str | None = None,
        newsletter_optin: bool = False,
    ) -> CheckoutResult:
        self.validate_cart(items, shipping)
        discount_percent = self._pricing.resolve_discount_code(discount_code)
        pricing = self._pricing.price_cart(items, shipping, discount_percent)

        order = self.build_order(
            items,
            shipping,
            pricing,
            email=email,
            discount_code=discount_code or None,
            newsletter_optin=newsletter_optin,
        )
        warnings: list[str] = []

        with LogContext(order_id=str(order.id)):
            try:
                self._order_repo.insert_pending_order(order)
            except Exception:
                # The gateway confirmation is the settlement record; a missing
                # pending row must not block the customer from paying.
                logger.exception("pending_order_insert_failed")
                warnings.append("Ordern kunde inte sparas innan betalningen.")

            try:
                session = self._gateway.create_checkout_session(
                    self.gateway_line_items(items, shipping, pricing),
                    self.gateway_metadata(order, pricing),
                    customer_email=email,
                    discount_amount=pricing.discount * self._minor,
                )
            except GatewayError as exc:
                logger.error(
                    "checkout_gateway_failed",
                    error_code=exc.error_code,
                    message=exc.message,
                )
                raise

            try:
                self._order_repo.attach_session(order.id, session.session_id)
            except Exception:
                logger.exception("attach_session_failed", session_id=session.session_id)
                warnings.append("Betalningen kunde inte kopplas till ordern.")

            logger.info(
                "checkout_submitted",
                session_id=session.session_id,
                total=order.total_amount,
                discount=order.discount_amount,
            )

        return CheckoutResult(
            redirect_url=session.redirect_url,
            session_id=session.session_id,
            order_id=order.id,
            pricing=pricing,
            warnings=warnings,
        )

    @staticmethod
    def validate_cart(
        items: Sequence[LineItem], shipping: ShippingSelection | None
    ) -> None:
        if not items:
            raise InvalidCartStateError("Varukorgen är tom")
        if shipping is None:
            raise InvalidCartStateError("Inget fraktalternativ valt")
        for item in items:
            if item.quantity < 1:
                raise InvalidCartStateError(
                    f"Ogiltigt antal för {item.title}",
                    context={"product_id": item.product_id, "quantity": item.quantity},
                )
            if item.unit_price_ex_tax < 0:
                raise InvalidCartStateError(
                    f"Ogiltigt pris för {item.title}",
                    context={"product_id": item.product_id},
                )

    def build_order(
        self,
        items: Sequence[LineItem],
        shipping: ShippingSelection,
        pricing: OrderPricingResult,
        email: str | None = None,
        discount_code: str | None = None,
        newsletter_optin: bool = False,
    ) -> Order:
        rates = self._pricing.rates
        lines = [
            OrderLine(
                product_id=item.product_id,
                title=item.title,
                unit_price=gross_unit_price(
                    item.unit_price_ex_tax, rates.rate_for(item.tax_category)
                ),
                quantity=item.quantity,
                tax_category=item.tax_category,
            )
            for item in items
        ]
        return Order(
            email=email or PLACEHOLDER_EMAIL,
            items=lines,
            shipping=OrderShipping(
                option_id=shipping.option_id,
                name=shipping.name,
                region=shipping.region,
                price=pricing.shipping.amounts.inc_tax,
                price_ex_tax=pricing.shipping.amounts.ex_tax,
                tax_rate=pricing.shipping.rate,
            ),
            total_amount=pricing.total.inc_tax * self._minor,
            discount_amount=pricing.discount * self._minor,
            discount_code=discount_code,
            pricing=pricing,
            newsletter_optin=newsletter_optin,
        )

    def gateway_line_items(
        self,
        items: Sequence[LineItem],
        shipping: ShippingSelection,
        pricing: OrderPricingResult,
    ) -> list[GatewayLineItem]:
        rates = self._pricing.rates
        lines = []
        for item in items:
            rate = rates.rate_for(item.tax_category)
            lines.append(
                GatewayLineItem(
                    name=f"{item.title} (inkl. {percent_label(rate)}% moms)",
                    unit_amount=gross_unit_price(item.unit_price_ex_tax, rate) * self._minor,
                    quantity=item.quantity,
                )
            )

        shipping_rate = pricing.shipping.rate
        if shipping_rate == 0:
            label = f"{shipping.name} (momsfri export)"
        else:
            label = f"{shipping.name} (inkl. {percent_label(shipping_rate)}% moms)"
        lines.append(
            GatewayLineItem(
                name=label,
                unit_amount=pricing.shipping.amounts.inc_tax * self._minor,
                quantity=1,
            )
        )
        return lines

    @staticmethod
    def gateway_metadata(order: Order, pricing: OrderPricingResult) -> dict[str, str]:
        """Opaque metadata the gateway echoes back on settlement."""
        return {
            "order_id": str(order.id),
            "order_items": json.dumps(
                [line.to_dict() for line in order.items], ensure_ascii=False
            ),
            "shipping": json.dumps(
                order.shipping.to_dict() if order.shipping else {}, ensure_ascii=False
            ),
            "discount_code": order.discount_code or "",
            "discount_amount": str(pricing.discount),
            "vat_breakdown": json.dumps(pricing.to_dict()),
            "newsletter_optin": "true" if order.newsletter_optin else "false",
        }
