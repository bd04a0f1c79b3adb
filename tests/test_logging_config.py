"""Tests for structured logging setup."""

import json
import logging

import pytest
import structlog

from storefront_ledger.config import Settings
from storefront_ledger.logging_config import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_json_processors,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    clear_context()
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_format_renders_json(self) -> None:
        settings = Settings(_env_file=None, log_format="json")
        processors = get_json_processors()

        output = processors[-1](None, "info", {"event": "cart_priced", "total": 139})

        assert json.loads(output) == {"event": "cart_priced", "total": 139}
        configure_logging(settings)
        assert structlog.get_config()["processors"][-1].__class__.__name__ == "JSONRenderer"

    def test_log_file_handler_added(self, tmp_path) -> None:
        log_file = tmp_path / "logs" / "shop.log"
        root = logging.getLogger()
        before = list(root.handlers)

        configure_logging(Settings(_env_file=None, log_file=log_file))

        try:
            added = [h for h in root.handlers if h not in before]
            assert any(isinstance(h, logging.FileHandler) for h in added)
            assert log_file.parent.exists()
        finally:
            for handler in root.handlers:
                if handler not in before:
                    root.removeHandler(handler)
                    handler.close()


class TestLogContext:
    def test_binds_and_unbinds(self) -> None:
        with LogContext(order_id="abc"):
            assert structlog.contextvars.get_contextvars()["order_id"] == "abc"

        assert "order_id" not in structlog.contextvars.get_contextvars()

    def test_clear_context(self) -> None:
        bind_context(request_id="r1")

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_context_is_merged_into_events(self) -> None:
        with LogContext(order_id="abc"):
            event = structlog.contextvars.merge_contextvars(
                None, "info", {"event": "checkout_started"}
            )

        assert event == {"order_id": "abc", "event": "checkout_started"}

    def test_json_events_carry_app_and_environment(self) -> None:
        event: dict = {"event": "accounting_report_built"}
        for processor in get_json_processors()[:-1]:
            event = processor(logging.getLogger("tests"), "info", event)

        assert event["app"] == "Storefront Ledger"
        assert event["level"] == "info"
        assert event["logger"] == "tests"
        assert "timestamp" in event
