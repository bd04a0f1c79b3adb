"""API routes for Storefront Ledger."""

from datetime import UTC, date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from storefront_ledger.api.schemas import (
    AccountingReportResponse,
    CartLineRequest,
    CartPriceRequest,
    CheckoutRequest,
    CheckoutResponse,
    HealthResponse,
    PricingResponse,
    ProductResponse,
)
from storefront_ledger.container import (
    get_accounting_service,
    get_catalog_service,
    get_checkout_service,
    get_pricing_service,
)
from storefront_ledger.domain.catalog import LineItem
from storefront_ledger.services.accounting import AccountingServiceImpl
from storefront_ledger.services.cart import get_shipping_option, resolve_line_items
from storefront_ledger.services.catalog import CatalogServiceImpl
from storefront_ledger.services.checkout import CheckoutServiceImpl
from storefront_ledger.services.formatting import vat_specification
from storefront_ledger.services.pricing import PricingServiceImpl

# Create routers
health_router = APIRouter(tags=["health"])
product_router = APIRouter(prefix="/products", tags=["products"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])
accounting_router = APIRouter(prefix="/accounting", tags=["accounting"])

CatalogDep = Annotated[CatalogServiceImpl, Depends(get_catalog_service)]
PricingDep = Annotated[PricingServiceImpl, Depends(get_pricing_service)]
CheckoutDep = Annotated[CheckoutServiceImpl, Depends(get_checkout_service)]
AccountingDep = Annotated[AccountingServiceImpl, Depends(get_accounting_service)]


def _line_items(catalog: CatalogServiceImpl, lines: list[CartLineRequest]) -> list[LineItem]:
    return resolve_line_items(
        catalog, ((str(line.product_id), line.quantity) for line in lines)
    )


@health_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(status="healthy")


@product_router.get("", response_model=list[ProductResponse])
def list_products(catalog: CatalogDep) -> list[ProductResponse]:
    """List in-stock products in display order."""
    return [ProductResponse.from_product(p) for p in catalog.list_in_stock()]


@cart_router.post("/price", response_model=PricingResponse)
def price_cart(
    request: CartPriceRequest,
    catalog: CatalogDep,
    pricing: PricingDep,
) -> PricingResponse:
    """Price a cart at current catalog prices without submitting it."""
    items = _line_items(catalog, request.items)
    shipping = (
        get_shipping_option(request.shipping_option_id)
        if request.shipping_option_id
        else None
    )
    percent = pricing.resolve_discount_code(request.discount_code)
    result = pricing.price_cart(items, shipping, percent)
    return PricingResponse.from_result(result, vat_specification(result, pricing.rates))


@checkout_router.post(
    "", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED
)
def submit_checkout(
    request: CheckoutRequest,
    catalog: CatalogDep,
    checkout: CheckoutDep,
) -> CheckoutResponse:
    items = _line_items(catalog, request.items)
    result = checkout.submit(
        items,
        get_shipping_option(request.shipping_option_id),
        discount_code=request.discount_code,
        email=request.email,
        newsletter_optin=request.newsletter_optin,
    )
    return CheckoutResponse(
        redirect_url=result.redirect_url,
        session_id=result.session_id,
        order_id=result.order_id,
        total_inc_tax=result.pricing.total.inc_tax,
        warnings=result.warnings,
    )


@accounting_router.get("", response_model=AccountingReportResponse)
def accounting_report(
    accounting: AccountingDep,
    date_from: Annotated[date | None, Query()] = None,
    date_to: Annotated[date | None, Query()] = None,
    include_fees: Annotated[bool, Query()] = True,
) -> AccountingReportResponse:
    """Accounting rows for completed orders; amounts in öre."""
    report = accounting.report(date_from, date_to, include_fees=include_fees)
    return AccountingReportResponse.from_report(report, datetime.now(UTC))


@accounting_router.get("/export")
def accounting_export(
    accounting: AccountingDep,
    date_from: Annotated[date | None, Query()] = None,
    date_to: Annotated[date | None, Query()] = None,
    include_fees: Annotated[bool, Query()] = True,
) -> Response:
    """Download the accounting report as a semicolon-separated CSV."""
    report = accounting.report(date_from, date_to, include_fees=include_fees)
    return Response(
        content=accounting.export_csv(report),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )
