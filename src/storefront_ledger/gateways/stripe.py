"""Stripe adapter for the PaymentGateway port, over the plain REST API."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

import httpx

from storefront_ledger.config import Settings
from storefront_ledger.exceptions import (
    FeeLookupError,
    GatewayConfigurationError,
    GatewayError,
    GatewayNetworkError,
    GatewayValidationError,
)
from storefront_ledger.logging_config import get_logger
from storefront_ledger.services.interfaces import (
    CheckoutSession,
    GatewayLineItem,
    PaymentGateway,
)

logger = get_logger(__name__)

PLACEHOLDER_EMAILS = frozenset({"guest@example.com", "pending@checkout.temp"})

# Checkout sessions expire after 24 hours; the coupon need not outlive one.
COUPON_LIFETIME_SECONDS = 24 * 60 * 60


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        settings: Settings,
        client: httpx.Client | None = None,
    ) -> None:
        if not settings.stripe_secret_key:
            raise GatewayConfigurationError(
                "Stripe secret key is not configured",
                context={"setting": "SFL_STRIPE_SECRET_KEY"},
            )
        self._settings = settings
        self._currency = settings.currency.lower()
        self._client = (
            client
            if client is not None
            else httpx.Client(
                base_url=settings.stripe_api_base,
                timeout=settings.gateway_timeout,
            )
        )
        self._client.auth = (settings.stripe_secret_key, "")

    def close(self) -> None:
        self._client.close()

    def create_checkout_session(
        self,
        line_items: Sequence[GatewayLineItem],
        metadata: dict[str, str],
        customer_email: str | None = None,
        discount_amount: int = 0,
    ) -> CheckoutSession:
        form: dict[str, Any] = {
            "mode": "payment",
            "locale": "sv",
            "payment_method_types[0]": "card",
            "success_url": self._settings.checkout_success_url,
            "cancel_url": self._settings.checkout_cancel_url,
            "billing_address_collection": "required",
        }
        for i, item in enumerate(line_items):
            prefix = f"line_items[{i}]"
            form[f"{prefix}[price_data][currency]"] = self._currency
            form[f"{prefix}[price_data][product_data][name]"] = item.name
            form[f"{prefix}[price_data][unit_amount]"] = str(item.unit_amount)
            form[f"{prefix}[quantity]"] = str(item.quantity)
        for i, country in enumerate(self._settings.allowed_shipping_countries):
            form[f"shipping_address_collection[allowed_countries][{i}]"] = country
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = value
            form[f"payment_intent_data[metadata][{key}]"] = value
        if customer_email and customer_email not in PLACEHOLDER_EMAILS:
            form["customer_email"] = customer_email
        coupon_id = None
        if discount_amount > 0:
            coupon_id = self._create_coupon(discount_amount)
            form["discounts[0][coupon]"] = coupon_id

        try:
            data = self._request("POST", "/v1/checkout/sessions", data=form)
            session_id, url = data.get("id"), data.get("url")
            if not isinstance(session_id, str) or not isinstance(url, str):
                raise GatewayValidationError(
                    "Malformed checkout session response",
                    context={"path": "/v1/checkout/sessions", "keys": sorted(data)},
                )
        except GatewayError:
            if coupon_id is not None:
                # One-off coupons expire on their own; record it for cleanup.
                logger.warning("checkout_coupon_orphaned", coupon_id=coupon_id)
            raise

        logger.info("checkout_session_created", session_id=session_id)
        return CheckoutSession(redirect_url=url, session_id=session_id)

    def get_transaction_fee(self, transaction_id: str) -> int | None:
        """Fee from the balance transaction behind a payment intent's charge."""
        try:
            intent = self._request("GET", f"/v1/payment_intents/{transaction_id}")
            charge_id = intent.get("latest_charge")
            if not charge_id:
                return None
            charge = self._request(
                "GET",
                f"/v1/charges/{charge_id}",
                params={"expand[]": "balance_transaction"},
            )
        except GatewayError as exc:
            raise FeeLookupError(transaction_id, exc.message) from exc

        balance = charge.get("balance_transaction")
        if not isinstance(balance, dict) or not isinstance(balance.get("fee"), int):
            return None
        return balance["fee"]

    def _create_coupon(self, amount_off: int) -> str:
        data = self._request(
            "POST",
            "/v1/coupons",
            data={
                "amount_off": str(amount_off),
                "currency": self._currency,
                "duration": "once",
                "name": "Rabatt",
                "redeem_by": str(int(time.time()) + COUPON_LIFETIME_SECONDS),
            },
        )
        coupon_id = data.get("id")
        if not isinstance(coupon_id, str):
            raise GatewayValidationError(
                "Malformed coupon response",
                context={"path": "/v1/coupons", "keys": sorted(data)},
            )
        return coupon_id

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("gateway_unreachable", path=path, error=str(exc))
            raise GatewayNetworkError(
                f"Could not reach payment gateway: {exc}", context={"path": path}
            ) from exc

        if response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None
            if not isinstance(data, dict):
                logger.warning(
                    "gateway_malformed_response",
                    path=path,
                    status=response.status_code,
                )
                raise GatewayValidationError(
                    "Gateway returned a response that is not a JSON object",
                    context={"path": path, "status": response.status_code},
                )
            return data

        message = response.text
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            pass
        context = {"path": path, "status": response.status_code}

        if response.status_code in (401, 403):
            raise GatewayConfigurationError(message, context=context)
        if response.status_code in (400, 402, 404):
            raise GatewayValidationError(message, context=context)
        raise GatewayError(message, context=context)
