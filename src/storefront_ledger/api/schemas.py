"""Pydantic v2 schemas for API request/response models."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront_ledger.domain.catalog import Product
from storefront_ledger.domain.orders import AccountingReport, AccountingRow
from storefront_ledger.domain.pricing import OrderPricingResult, TaxBreakdownBucket


class HealthResponse(BaseModel):
    status: str


# Catalog Schemas
class ProductResponse(BaseModel):
    """Schema for a catalog product; prices are tax-exclusive kronor."""

    id: UUID
    title: str
    description: str
    price: int
    effective_price: int
    original_price: int | None
    discount_active: bool
    tax_category: str | None
    in_stock: bool

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            title=product.title,
            description=product.description,
            price=product.price,
            effective_price=product.effective_price,
            original_price=product.original_price,
            discount_active=product.discount_active,
            tax_category=product.tax_category.value if product.tax_category else None,
            in_stock=product.in_stock,
        )


# Cart Schemas
class CartLineRequest(BaseModel):
    product_id: UUID
    quantity: int = Field(default=1, ge=1, le=999)


class CartPriceRequest(BaseModel):
    """Schema for pricing a cart without submitting it."""

    model_config = ConfigDict(str_strip_whitespace=True)

    items: list[CartLineRequest]
    shipping_option_id: str | None = None
    discount_code: str | None = None


class BucketResponse(BaseModel):
    ex_tax: int
    tax: int
    inc_tax: int

    @classmethod
    def from_bucket(cls, bucket: TaxBreakdownBucket) -> "BucketResponse":
        return cls(ex_tax=bucket.ex_tax, tax=bucket.tax, inc_tax=bucket.inc_tax)


class RateBucketResponse(BucketResponse):
    rate: str


class PricingResponse(BaseModel):
    """Schema for a priced cart; amounts in whole kronor."""

    rates: list[RateBucketResponse]
    products: BucketResponse
    products_before_discount: int
    discount: int
    discount_percent: int
    shipping: BucketResponse
    shipping_rate: str
    total_ex_tax: int
    total_tax: int
    total_inc_tax: int
    rounding_adjustment: int
    vat_specification: list[str]

    @classmethod
    def from_result(
        cls, result: OrderPricingResult, specification: list[str]
    ) -> "PricingResponse":
        return cls(
            rates=[
                RateBucketResponse(rate=str(rate), **bucket.to_dict())
                for rate, bucket in sorted(result.rates.items())
            ],
            products=BucketResponse.from_bucket(result.products.amounts),
            products_before_discount=result.products.original_inc_tax,
            discount=result.discount,
            discount_percent=result.discount_percent,
            shipping=BucketResponse.from_bucket(result.shipping.amounts),
            shipping_rate=str(result.shipping.rate),
            total_ex_tax=result.total.ex_tax,
            total_tax=result.total.tax,
            total_inc_tax=result.total.inc_tax,
            rounding_adjustment=result.total.rounding_adjustment,
            vat_specification=specification,
        )


# Checkout Schemas
class CheckoutRequest(CartPriceRequest):
    shipping_option_id: str
    email: str | None = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    newsletter_optin: bool = False


class CheckoutResponse(BaseModel):
    redirect_url: str
    session_id: str
    order_id: UUID | None
    total_inc_tax: int
    warnings: list[str]


# Accounting Schemas
class AccountingRowResponse(BaseModel):
    """One settled order; amounts in öre."""

    order_id: UUID
    order_number: str
    date: date
    customer: str
    products: str
    amount_ex_tax: int
    reduced_tax: int
    standard_tax: int
    total_tax: int
    amount_inc_tax: int
    processor_fee: int
    fee_pending: bool
    net_payout: int

    @classmethod
    def from_row(cls, row: AccountingRow) -> "AccountingRowResponse":
        return cls(
            order_id=row.order_id,
            order_number=row.order_number,
            date=row.date,
            customer=row.customer,
            products=row.products,
            amount_ex_tax=row.amount_ex_tax,
            reduced_tax=row.reduced_tax,
            standard_tax=row.standard_tax,
            total_tax=row.total_tax,
            amount_inc_tax=row.amount_inc_tax,
            processor_fee=row.processor_fee,
            fee_pending=row.fee_pending,
            net_payout=row.net_payout,
        )


class AccountingTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount_ex_tax: int
    reduced_tax: int
    standard_tax: int
    total_tax: int
    amount_inc_tax: int
    processor_fee: int
    net_payout: int
    order_count: int
    fee_pending_count: int


class AccountingReportResponse(BaseModel):
    date_from: date | None
    date_to: date | None
    fees_included: bool
    generated_at: datetime
    rows: list[AccountingRowResponse]
    totals: AccountingTotalsResponse

    @classmethod
    def from_report(
        cls, report: AccountingReport, generated_at: datetime
    ) -> "AccountingReportResponse":
        return cls(
            date_from=report.date_from,
            date_to=report.date_to,
            fees_included=report.fees_included,
            generated_at=generated_at,
            rows=[AccountingRowResponse.from_row(row) for row in report.rows],
            totals=AccountingTotalsResponse.model_validate(report.totals),
        )
