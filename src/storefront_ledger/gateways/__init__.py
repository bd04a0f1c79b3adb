from storefront_ledger.gateways.stripe import StripeGateway

__all__ = ["StripeGateway"]
