"""Dependency injection container for Storefront Ledger.

Services are built lazily on first access and cached for reuse:

    from storefront_ledger.container import get_container

    container = get_container()
    result = container.pricing_service.price_cart(items, shipping)
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from storefront_ledger.config import Settings, get_settings
from storefront_ledger.logging_config import get_logger

if TYPE_CHECKING:
    from storefront_ledger.repositories.cart_file import JSONFileCartRepository
    from storefront_ledger.repositories.sqlite import (
        SQLiteCatalogRepository,
        SQLiteDatabase,
        SQLiteOrderRepository,
    )
    from storefront_ledger.services.accounting import AccountingServiceImpl, FeeLookup
    from storefront_ledger.services.cart import CartServiceImpl
    from storefront_ledger.services.catalog import CatalogServiceImpl
    from storefront_ledger.services.checkout import CheckoutServiceImpl
    from storefront_ledger.services.interfaces import PaymentGateway
    from storefront_ledger.services.orders import OrderServiceImpl
    from storefront_ledger.services.pricing import PricingServiceImpl

logger = get_logger(__name__)


class Container:
    """Lazy access to the application's repositories and services.

    Tests build one directly with their own settings:

        container = Container(settings=Settings(database_path=":memory:"))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        gateway: "PaymentGateway | None" = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway
        logger.debug(
            "container_created",
            database_path=str(self._settings.database_path),
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> "SQLiteDatabase":
        from storefront_ledger.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.database_path)
        logger.info("initializing_sqlite_database", path=db_path)

        # The API serves requests from a thread pool.
        db = SQLiteDatabase(db_path, check_same_thread=False)
        db.initialize()
        return db

    @cached_property
    def catalog_repository(self) -> "SQLiteCatalogRepository":
        from storefront_ledger.repositories.sqlite import SQLiteCatalogRepository

        return SQLiteCatalogRepository(self.database)

    @cached_property
    def order_repository(self) -> "SQLiteOrderRepository":
        from storefront_ledger.repositories.sqlite import SQLiteOrderRepository

        return SQLiteOrderRepository(self.database)

    @cached_property
    def cart_repository(self) -> "JSONFileCartRepository":
        from storefront_ledger.repositories.cart_file import JSONFileCartRepository

        return JSONFileCartRepository(self._settings.cart_path)

    @property
    def gateway_configured(self) -> bool:
        return self._gateway is not None or bool(self._settings.stripe_secret_key)

    @cached_property
    def gateway(self) -> "PaymentGateway":
        """The payment gateway; raises GatewayConfigurationError without a key."""
        if self._gateway is not None:
            return self._gateway
        from storefront_ledger.gateways.stripe import StripeGateway

        return StripeGateway(self._settings)

    @cached_property
    def pricing_service(self) -> "PricingServiceImpl":
        from storefront_ledger.services.pricing import PricingServiceImpl
        from storefront_ledger.services.vat import VatRates

        return PricingServiceImpl(
            rates=VatRates.from_settings(self._settings),
            discount_codes=self._settings.discount_codes,
        )

    @cached_property
    def catalog_service(self) -> "CatalogServiceImpl":
        from storefront_ledger.services.catalog import CatalogServiceImpl

        return CatalogServiceImpl(self.catalog_repository)

    @cached_property
    def cart_service(self) -> "CartServiceImpl":
        from storefront_ledger.services.cart import CartServiceImpl

        return CartServiceImpl(self.cart_repository, self.catalog_service)

    @cached_property
    def checkout_service(self) -> "CheckoutServiceImpl":
        from storefront_ledger.services.checkout import CheckoutServiceImpl

        return CheckoutServiceImpl(
            self.pricing_service,
            self.gateway,
            self.order_repository,
            minor_units_per_unit=self._settings.minor_units_per_unit,
        )

    @cached_property
    def order_service(self) -> "OrderServiceImpl":
        from storefront_ledger.services.orders import OrderServiceImpl

        return OrderServiceImpl(self.order_repository)

    @cached_property
    def fee_lookup(self) -> "FeeLookup | None":
        """None when no gateway is configured; every fee then reads as pending."""
        if not self.gateway_configured:
            logger.warning("fee_lookup_disabled", reason="no payment gateway key")
            return None
        from storefront_ledger.services.accounting import FeeLookup

        return FeeLookup(self.gateway, max_workers=self._settings.fee_lookup_max_workers)

    @cached_property
    def accounting_service(self) -> "AccountingServiceImpl":
        from storefront_ledger.services.accounting import AccountingServiceImpl

        return AccountingServiceImpl(
            self.order_repository,
            self.pricing_service,
            fee_lookup=self.fee_lookup,
            minor_units_per_unit=self._settings.minor_units_per_unit,
            currency=self._settings.currency,
            timezone=self._settings.timezone,
        )

    def close(self) -> None:
        """Release the database connection and gateway client, if opened."""
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()
        if "gateway" in self.__dict__ and hasattr(self.gateway, "close"):
            self.gateway.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


_container: Container | None = None


@lru_cache
def get_container() -> Container:
    """Global container, created on first access from default settings."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Drop the global container; used by tests."""
    global _container
    if _container is not None:
        _container.close()
        _container = None
    get_container.cache_clear()


# FastAPI dependency functions
def get_catalog_service() -> "CatalogServiceImpl":
    return get_container().catalog_service


def get_pricing_service() -> "PricingServiceImpl":
    return get_container().pricing_service


def get_checkout_service() -> "CheckoutServiceImpl":
    """FastAPI dependency for checkout; resolving it needs a gateway key."""
    return get_container().checkout_service


def get_accounting_service() -> "AccountingServiceImpl":
    return get_container().accounting_service
