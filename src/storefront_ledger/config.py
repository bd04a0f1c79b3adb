"""Centralized configuration management using pydantic-settings.

Configuration is loaded from environment variables with sensible defaults.
All settings can be overridden via environment variables or a .env file.
"""

from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development. Override via
    environment variables (prefixed with SFL_) or .env file.

    Examples:
        SFL_STRIPE_SECRET_KEY=sk_live_...
        SFL_DATABASE_PATH=/var/lib/storefront/shop.db
        SFL_LOG_LEVEL=DEBUG
        SFL_ENVIRONMENT=production
    """

    model_config = SettingsConfigDict(
        env_prefix="SFL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront Ledger"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=False, description="Enable debug mode")

    # Storage
    database_path: Path = Field(
        default=Path("storefront.db"),
        description="SQLite database file holding products and orders",
    )
    cart_path: Path = Field(
        default=Path(".storefront_cart.json"),
        description="Local JSON file backing the shopping cart",
    )

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format: 'json' for production, 'console' for development",
    )
    log_file: Path | None = Field(default=None, description="Optional log file path")

    # Money and VAT
    currency: str = Field(default="SEK", min_length=3, max_length=3)
    minor_units_per_unit: int = Field(
        default=100,
        ge=1,
        description="Minor units (öre) per pricing unit (krona)",
    )
    reduced_vat_rate: Decimal = Field(
        default=Decimal("0.06"), description="VAT rate for books"
    )
    standard_vat_rate: Decimal = Field(
        default=Decimal("0.25"), description="VAT rate for everything else"
    )
    discount_codes: dict[str, int] = Field(
        default_factory=lambda: {"VÄLKOMMEN10": 10},
        description="Discount code to percentage, matched case-insensitively",
    )

    # Payment gateway
    stripe_secret_key: str | None = Field(
        default=None, description="Payment processor secret key"
    )
    stripe_api_base: str = "https://api.stripe.com"
    gateway_timeout: float = Field(default=30.0, gt=0)
    checkout_success_url: str = (
        "http://localhost:3000/success?session_id={CHECKOUT_SESSION_ID}"
    )
    checkout_cancel_url: str = "http://localhost:3000/butik"
    allowed_shipping_countries: list[str] = Field(
        default_factory=lambda: ["SE", "NO", "DK", "FI"]
    )
    fee_lookup_max_workers: int = Field(default=8, ge=1, le=64)
    timezone: str = Field(
        default="Europe/Stockholm",
        description="Zone whose calendar dates the accounting report uses",
    )

    # API Server
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @field_validator("reduced_vat_rate", "standard_vat_rate", mode="after")
    @classmethod
    def validate_vat_rate(cls, v: Decimal) -> Decimal:
        """VAT rates are fractions, not percentages."""
        if v < 0 or v >= 1:
            raise ValueError(f"VAT rate must be in [0, 1), got {v}")
        return v

    @field_validator("discount_codes", mode="after")
    @classmethod
    def validate_discount_codes(cls, v: dict[str, int]) -> dict[str, int]:
        for code, percent in v.items():
            if not 0 <= percent <= 100:
                raise ValueError(f"Discount {code!r} must be 0-100 percent, got {percent}")
        return {code.casefold(): percent for code, percent in v.items()}

    @model_validator(mode="after")
    def require_gateway_key_in_production(self) -> "Settings":
        """Refuse to start a production shop that cannot take payments."""
        if self.is_production and not self.stripe_secret_key:
            raise ValueError(
                "SFL_STRIPE_SECRET_KEY must be set when SFL_ENVIRONMENT=production"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.

    Returns:
        Configured Settings instance.
    """
    return Settings()
