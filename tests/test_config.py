"""Tests for configuration loading."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront_ledger.config import Environment, Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SFL_STRIPE_SECRET_KEY", raising=False)

        settings = Settings(_env_file=None)

        assert settings.reduced_vat_rate == Decimal("0.06")
        assert settings.standard_vat_rate == Decimal("0.25")
        assert settings.minor_units_per_unit == 100
        assert settings.currency == "SEK"
        assert settings.timezone == "Europe/Stockholm"
        assert settings.environment is Environment.DEVELOPMENT

    def test_discount_codes_are_casefolded(self) -> None:
        settings = Settings(_env_file=None, discount_codes={"SOMMAR20": 20})

        assert settings.discount_codes == {"sommar20": 20}

    def test_discount_over_100_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, discount_codes={"GRATIS": 150})

    def test_percentage_vat_rate_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, reduced_vat_rate=Decimal("6"))

    def test_production_requires_gateway_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SFL_STRIPE_SECRET_KEY", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None, environment=Environment.PRODUCTION)

    def test_production_with_key(self) -> None:
        settings = Settings(
            _env_file=None,
            environment=Environment.PRODUCTION,
            stripe_secret_key="sk_live_x",
        )

        assert settings.is_production


class TestGetSettings:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SFL_STANDARD_VAT_RATE", "0.12")
        monkeypatch.setenv("SFL_LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()

        try:
            settings = get_settings()
            assert settings.standard_vat_rate == Decimal("0.12")
            assert settings.log_level.value == "DEBUG"
        finally:
            get_settings.cache_clear()

    def test_is_cached(self) -> None:
        get_settings.cache_clear()

        assert get_settings() is get_settings()
