"""Tests for the Stripe gateway adapter using httpx.MockTransport."""

import time
from urllib.parse import parse_qs

import httpx
import pytest
from structlog.testing import capture_logs

from storefront_ledger.config import Settings
from storefront_ledger.exceptions import (
    FeeLookupError,
    GatewayConfigurationError,
    GatewayError,
    GatewayNetworkError,
    GatewayValidationError,
)
from storefront_ledger.gateways.stripe import StripeGateway
from storefront_ledger.services.interfaces import GatewayLineItem


def _gateway(settings: Settings, handler) -> StripeGateway:
    client = httpx.Client(
        base_url=settings.stripe_api_base, transport=httpx.MockTransport(handler)
    )
    return StripeGateway(settings, client=client)


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


LINES = [
    GatewayLineItem(name="Bok (inkl. 6% moms)", unit_amount=10000, quantity=1),
    GatewayLineItem(name="Inom Sverige (inkl. 6% moms)", unit_amount=3900, quantity=1),
]


class TestConfiguration:
    def test_missing_key_is_configuration_error(self, tmp_path) -> None:
        settings = Settings(stripe_secret_key=None, cart_path=tmp_path / "c.json")

        with pytest.raises(GatewayConfigurationError):
            StripeGateway(settings)


class TestCreateCheckoutSession:
    def test_posts_form_encoded_session(self, test_settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}
            )

        gateway = _gateway(test_settings, handler)

        session = gateway.create_checkout_session(
            LINES, {"order_id": "abc"}, customer_email="kund@example.se"
        )

        assert session.session_id == "cs_test_1"
        assert session.redirect_url == "https://checkout.stripe.test/cs_test_1"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/checkout/sessions"
        assert request.headers["authorization"].startswith("Basic ")
        form = _form(request)
        assert form["mode"] == "payment"
        assert form["locale"] == "sv"
        assert form["line_items[0][price_data][currency]"] == "sek"
        assert form["line_items[0][price_data][unit_amount]"] == "10000"
        assert form["line_items[1][price_data][product_data][name]"] == (
            "Inom Sverige (inkl. 6% moms)"
        )
        assert form["shipping_address_collection[allowed_countries][0]"] == "SE"
        assert form["metadata[order_id]"] == "abc"
        assert form["payment_intent_data[metadata][order_id]"] == "abc"
        assert form["customer_email"] == "kund@example.se"
        assert "discounts[0][coupon]" not in form

    def test_placeholder_email_not_sent(self, test_settings: Settings) -> None:
        forms: list[dict[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            forms.append(_form(request))
            return httpx.Response(200, json={"id": "cs_1", "url": "https://x.test"})

        _gateway(test_settings, handler).create_checkout_session(
            LINES, {}, customer_email="pending@checkout.temp"
        )

        assert "customer_email" not in forms[0]

    def test_discount_creates_one_off_coupon(self, test_settings: Settings) -> None:
        paths: list[str] = []
        forms: list[dict[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            forms.append(_form(request))
            if request.url.path == "/v1/coupons":
                return httpx.Response(200, json={"id": "coupon_1"})
            return httpx.Response(200, json={"id": "cs_1", "url": "https://x.test"})

        _gateway(test_settings, handler).create_checkout_session(
            LINES, {}, discount_amount=1390
        )

        assert paths == ["/v1/coupons", "/v1/checkout/sessions"]
        assert forms[0]["amount_off"] == "1390"
        assert forms[0]["duration"] == "once"
        assert forms[1]["discounts[0][coupon]"] == "coupon_1"

    def test_coupon_expires(self, test_settings: Settings) -> None:
        forms: list[dict[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            forms.append(_form(request))
            if request.url.path == "/v1/coupons":
                return httpx.Response(200, json={"id": "coupon_1"})
            return httpx.Response(200, json={"id": "cs_1", "url": "https://x.test"})

        before = int(time.time())
        _gateway(test_settings, handler).create_checkout_session(
            LINES, {}, discount_amount=1390
        )

        assert before < int(forms[0]["redeem_by"]) <= before + 2 * 24 * 60 * 60

    def test_failed_session_logs_orphaned_coupon(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/coupons":
                return httpx.Response(200, json={"id": "coupon_1"})
            return httpx.Response(400, json={"error": {"message": "bad line item"}})

        with capture_logs() as logs, pytest.raises(GatewayValidationError):
            _gateway(test_settings, handler).create_checkout_session(
                LINES, {}, discount_amount=1390
            )

        orphaned = [e for e in logs if e["event"] == "checkout_coupon_orphaned"]
        assert orphaned[0]["coupon_id"] == "coupon_1"

    @pytest.mark.parametrize(
        "body",
        [{"object": "checkout.session"}, {"id": "cs_1"}, {"id": 5, "url": "https://x.test"}],
    )
    def test_malformed_session_is_validation_error(
        self, test_settings: Settings, body: dict
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(GatewayValidationError):
            _gateway(test_settings, handler).create_checkout_session(LINES, {})

    def test_malformed_coupon_is_validation_error(self, test_settings: Settings) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"object": "coupon"})

        with pytest.raises(GatewayValidationError):
            _gateway(test_settings, handler).create_checkout_session(
                LINES, {}, discount_amount=1390
            )

        assert paths == ["/v1/coupons"]

    @pytest.mark.parametrize(
        "content", [b"<html>gateway hiccup</html>", b"[]", b""]
    )
    def test_non_object_body_is_validation_error(
        self, test_settings: Settings, content: bytes
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=content)

        with pytest.raises(GatewayValidationError):
            _gateway(test_settings, handler).create_checkout_session(LINES, {})

    @pytest.mark.parametrize(
        "status_code,error_type",
        [
            (401, GatewayConfigurationError),
            (400, GatewayValidationError),
            (500, GatewayError),
        ],
    )
    def test_http_errors_are_categorised(
        self, test_settings: Settings, status_code: int, error_type: type
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json={"error": {"message": "nope"}})

        with pytest.raises(error_type) as exc_info:
            _gateway(test_settings, handler).create_checkout_session(LINES, {})

        assert exc_info.value.message == "nope"

    def test_transport_failure_is_network_error(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayNetworkError) as exc_info:
            _gateway(test_settings, handler).create_checkout_session(LINES, {})

        assert exc_info.value.status_code == 502


class TestTransactionFee:
    def test_fee_from_balance_transaction(self, test_settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/v1/payment_intents/pi_1":
                return httpx.Response(200, json={"id": "pi_1", "latest_charge": "ch_1"})
            if request.url.path == "/v1/charges/ch_1":
                return httpx.Response(
                    200, json={"id": "ch_1", "balance_transaction": {"fee": 347}}
                )
            return httpx.Response(404, json={"error": {"message": "missing"}})

        fee = _gateway(test_settings, handler).get_transaction_fee("pi_1")

        assert fee == 347
        assert seen[1].url.params["expand[]"] == "balance_transaction"

    def test_no_charge_yet_means_no_fee(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "pi_1", "latest_charge": None})

        assert _gateway(test_settings, handler).get_transaction_fee("pi_1") is None

    def test_unexpanded_balance_transaction_means_no_fee(
        self, test_settings: Settings
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/v1/payment_intents"):
                return httpx.Response(200, json={"latest_charge": "ch_1"})
            return httpx.Response(200, json={"balance_transaction": "txn_1"})

        assert _gateway(test_settings, handler).get_transaction_fee("pi_1") is None

    def test_lookup_failure_raises_fee_lookup_error(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": {"message": "down"}})

        with pytest.raises(FeeLookupError) as exc_info:
            _gateway(test_settings, handler).get_transaction_fee("pi_1")

        assert exc_info.value.context["transaction_id"] == "pi_1"

    def test_non_json_body_raises_fee_lookup_error(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway hiccup</html>")

        with pytest.raises(FeeLookupError):
            _gateway(test_settings, handler).get_transaction_fee("pi_1")
