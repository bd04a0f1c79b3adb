from storefront_ledger.services.accounting import AccountingServiceImpl, FeeLookup
from storefront_ledger.services.cart import CartServiceImpl, get_shipping_option
from storefront_ledger.services.catalog import CatalogServiceImpl
from storefront_ledger.services.checkout import CheckoutServiceImpl
from storefront_ledger.services.interfaces import (
    AccountingService,
    CartService,
    CatalogService,
    CheckoutResult,
    CheckoutService,
    CheckoutSession,
    GatewayLineItem,
    OrderService,
    PaymentGateway,
    PricingService,
)
from storefront_ledger.services.orders import OrderServiceImpl
from storefront_ledger.services.pricing import PricingServiceImpl
from storefront_ledger.services.vat import DEFAULT_RATES, VatRates

__all__ = [
    "AccountingService",
    "AccountingServiceImpl",
    "CartService",
    "CartServiceImpl",
    "CatalogService",
    "CatalogServiceImpl",
    "CheckoutResult",
    "CheckoutService",
    "CheckoutServiceImpl",
    "CheckoutSession",
    "DEFAULT_RATES",
    "FeeLookup",
    "GatewayLineItem",
    "OrderService",
    "OrderServiceImpl",
    "PaymentGateway",
    "PricingService",
    "PricingServiceImpl",
    "VatRates",
    "get_shipping_option",
]
