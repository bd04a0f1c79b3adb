from storefront_ledger.domain.catalog import (
    DEFAULT_SHIPPING_OPTIONS,
    LineItem,
    Product,
    ShippingSelection,
)
from storefront_ledger.domain.orders import (
    AccountingReport,
    AccountingRow,
    AccountingTotals,
    Order,
    OrderLine,
    OrderShipping,
)
from storefront_ledger.domain.pricing import (
    OrderPricingResult,
    OrderTotal,
    ProductsAggregate,
    ShippingAggregate,
    TaxBreakdownBucket,
)
from storefront_ledger.domain.value_objects import (
    OrderStatus,
    ShippingRegion,
    TaxCategory,
)

__all__ = [
    "AccountingReport",
    "AccountingRow",
    "AccountingTotals",
    "DEFAULT_SHIPPING_OPTIONS",
    "LineItem",
    "Order",
    "OrderLine",
    "OrderPricingResult",
    "OrderShipping",
    "OrderStatus",
    "OrderTotal",
    "Product",
    "ProductsAggregate",
    "ShippingAggregate",
    "ShippingRegion",
    "ShippingSelection",
    "TaxBreakdownBucket",
    "TaxCategory",
]
