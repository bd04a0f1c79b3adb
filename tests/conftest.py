from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from storefront_ledger.config import Settings
from storefront_ledger.domain.catalog import LineItem, Product, ShippingSelection
from storefront_ledger.domain.orders import Order, OrderLine, OrderShipping
from storefront_ledger.domain.value_objects import OrderStatus, ShippingRegion, TaxCategory
from storefront_ledger.exceptions import FeeLookupError, GatewayError
from storefront_ledger.repositories.cart_file import InMemoryCartRepository
from storefront_ledger.repositories.sqlite import (
    SQLiteCatalogRepository,
    SQLiteDatabase,
    SQLiteOrderRepository,
)
from storefront_ledger.services.interfaces import (
    CheckoutSession,
    GatewayLineItem,
    PaymentGateway,
)
from storefront_ledger.services.pricing import PricingServiceImpl
from storefront_ledger.services.vat import VatRates


class FakeGateway(PaymentGateway):
    """Records checkout calls and serves fees from a dict."""

    def __init__(
        self,
        fees: dict[str, int] | None = None,
        failing_ids: set[str] | None = None,
        checkout_error: GatewayError | None = None,
    ) -> None:
        self.fees = fees or {}
        self.failing_ids = failing_ids or set()
        self.checkout_error = checkout_error
        self.sessions: list[dict] = []
        self.fee_requests: list[str] = []

    def create_checkout_session(
        self,
        line_items: Sequence[GatewayLineItem],
        metadata: dict[str, str],
        customer_email: str | None = None,
        discount_amount: int = 0,
    ) -> CheckoutSession:
        if self.checkout_error is not None:
            raise self.checkout_error
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append(
            {
                "line_items": list(line_items),
                "metadata": metadata,
                "customer_email": customer_email,
                "discount_amount": discount_amount,
            }
        )
        return CheckoutSession(
            redirect_url=f"https://pay.example.test/{session_id}",
            session_id=session_id,
        )

    def get_transaction_fee(self, transaction_id: str) -> int | None:
        self.fee_requests.append(transaction_id)
        if transaction_id in self.failing_ids:
            raise FeeLookupError(transaction_id, "boom")
        return self.fees.get(transaction_id)


@pytest.fixture
def rates() -> VatRates:
    return VatRates(reduced=Decimal("0.06"), standard=Decimal("0.25"))


@pytest.fixture
def pricing_service(rates: VatRates) -> PricingServiceImpl:
    return PricingServiceImpl(rates=rates, discount_codes={"VÄLKOMMEN10": 10})


@pytest.fixture
def book_item() -> LineItem:
    return LineItem(
        product_id="book-1",
        title="Bok",
        unit_price_ex_tax=94,
        quantity=1,
        tax_category=TaxCategory.BOOK,
    )


@pytest.fixture
def merch_item() -> LineItem:
    return LineItem(
        product_id="merch-1",
        title="Tygkasse",
        unit_price_ex_tax=200,
        quantity=1,
        tax_category=TaxCategory.MERCHANDISE,
    )


@pytest.fixture
def domestic_shipping() -> ShippingSelection:
    return ShippingSelection("sweden", "Inom Sverige", ShippingRegion.DOMESTIC, 39)


@pytest.fixture
def eu_shipping() -> ShippingSelection:
    return ShippingSelection("europe", "Europa (utanför Sverige)", ShippingRegion.EU, 100)


@pytest.fixture
def world_shipping() -> ShippingSelection:
    return ShippingSelection("world", "Utanför Europa", ShippingRegion.NON_EU, 100)


@pytest.fixture
def sample_product() -> Product:
    return Product(title="Bok", price=94, tax_category=TaxCategory.BOOK)


@pytest.fixture
def test_db() -> SQLiteDatabase:
    db = SQLiteDatabase(":memory:", check_same_thread=False)
    db.initialize()
    return db


@pytest.fixture
def catalog_repo(test_db: SQLiteDatabase) -> SQLiteCatalogRepository:
    return SQLiteCatalogRepository(test_db)


@pytest.fixture
def order_repo(test_db: SQLiteDatabase) -> SQLiteOrderRepository:
    return SQLiteOrderRepository(test_db)


@pytest.fixture
def cart_repo() -> InMemoryCartRepository:
    return InMemoryCartRepository()


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_path=":memory:",
        cart_path=tmp_path / "cart.json",
        stripe_secret_key="sk_test_123",
    )


def make_completed_order(
    transaction_id: str = "pi_1",
    created_at: datetime | None = None,
    email: str = "kund@example.se",
) -> Order:
    """A settled book order: 100 kr book plus 39 kr domestic shipping at 6%."""
    return Order(
        email=email,
        items=[
            OrderLine(
                product_id="book-1",
                title="Bok",
                unit_price=100,
                quantity=1,
                tax_category=TaxCategory.BOOK,
            )
        ],
        shipping=OrderShipping(
            option_id="sweden",
            name="Inom Sverige",
            region=ShippingRegion.DOMESTIC,
            price=39,
            price_ex_tax=37,
            tax_rate=Decimal("0.06"),
        ),
        total_amount=13900,
        status=OrderStatus.COMPLETED,
        session_id=f"cs_{transaction_id}",
        transaction_id=transaction_id,
        created_at=created_at or datetime(2026, 3, 15, 10, 0, tzinfo=UTC),
    )


@pytest.fixture
def completed_order() -> Order:
    return make_completed_order()
