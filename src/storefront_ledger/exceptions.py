"""Domain exception hierarchy for Storefront Ledger.

All domain-specific exceptions inherit from StorefrontLedgerError.
This allows catching all application errors with a single base class
while preserving specificity for individual error types.
"""

from typing import Any
from uuid import UUID


class StorefrontLedgerError(Exception):
    """Base exception for all Storefront Ledger errors.

    Includes an error_code and status_code for API responses, a
    user-facing message and extra context.
    """

    error_code: str = "SFL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Pricing Errors
# =============================================================================


class PricingError(StorefrontLedgerError):
    """Base exception for errors inside the pricing engine."""

    error_code = "PRICING_ERROR"
    status_code = 400


class UnknownTaxCategoryError(PricingError):
    """Raised when a line item carries a tax category with no VAT rate."""

    error_code = "UNKNOWN_TAX_CATEGORY"

    def __init__(self, category: object) -> None:
        super().__init__(
            f"Unknown tax category: {category!r}",
            context={"category": str(category)},
        )


class MissingTaxCategoryError(PricingError):
    """Raised when a new product is created without a tax category."""

    error_code = "MISSING_TAX_CATEGORY"

    def __init__(self, product_id: UUID | str) -> None:
        super().__init__(
            f"Product {product_id} has no tax category",
            context={"product_id": str(product_id)},
        )


class InvalidLineItemError(PricingError):
    """Raised when a line item violates its quantity or price invariants."""

    error_code = "INVALID_LINE_ITEM"

    def __init__(self, product_id: UUID | str, reason: str) -> None:
        super().__init__(
            f"Invalid line item {product_id}: {reason}",
            context={"product_id": str(product_id), "reason": reason},
        )


class InvalidDiscountError(PricingError):
    """Raised when a discount percentage is outside 0-100."""

    error_code = "INVALID_DISCOUNT"

    def __init__(self, percent: object) -> None:
        super().__init__(
            f"Discount must be between 0 and 100 percent, got {percent}",
            context={"percent": str(percent)},
        )


# =============================================================================
# Cart Errors
# =============================================================================


class InvalidCartStateError(StorefrontLedgerError):
    """Raised when a cart cannot be checked out."""

    error_code = "INVALID_CART_STATE"
    status_code = 400


class InvalidDiscountCodeError(StorefrontLedgerError):
    """Raised when a discount code is not recognised."""

    error_code = "INVALID_DISCOUNT_CODE"
    status_code = 400

    def __init__(self, code: str) -> None:
        super().__init__(
            f"Ogiltig rabattkod: {code}",
            context={"code": code},
        )


class ProductNotFoundError(StorefrontLedgerError):
    """Raised when a product cannot be found in the catalog."""

    error_code = "PRODUCT_NOT_FOUND"
    status_code = 404

    def __init__(self, product_id: UUID | str) -> None:
        super().__init__(
            f"Product not found: {product_id}",
            context={"product_id": str(product_id)},
        )


# =============================================================================
# Payment Gateway Errors
# =============================================================================


class GatewayError(StorefrontLedgerError):
    """Generic payment gateway failure."""

    error_code = "GATEWAY_ERROR"
    status_code = 500
    user_message = "Ett okänt fel uppstod vid betalningen. Försök igen senare."


class GatewayConfigurationError(GatewayError):
    """Raised when gateway credentials are missing or rejected.

    Never retried automatically.
    """

    error_code = "GATEWAY_CONFIGURATION_ERROR"
    status_code = 500
    user_message = "Betalningen är felkonfigurerad. Kontakta butiken."


class GatewayNetworkError(GatewayError):
    """Raised when the gateway cannot be reached."""

    error_code = "GATEWAY_NETWORK_ERROR"
    status_code = 502
    user_message = "Nätverksfel vid betalningen. Försök igen om en stund."


class GatewayValidationError(GatewayError):
    """Raised when the gateway rejects the checkout payload."""

    error_code = "GATEWAY_VALIDATION_ERROR"
    status_code = 400
    user_message = "Beställningen innehåller ogiltiga uppgifter."


class FeeLookupError(GatewayError):
    """Raised when a processor fee cannot be fetched for one transaction."""

    error_code = "FEE_LOOKUP_ERROR"

    def __init__(self, transaction_id: str, reason: str) -> None:
        super().__init__(
            f"Could not fetch fee for {transaction_id}: {reason}",
            context={"transaction_id": transaction_id, "reason": reason},
        )


# =============================================================================
# Order Errors
# =============================================================================


class OrderError(StorefrontLedgerError):
    """Base exception for order-related errors."""

    error_code = "ORDER_ERROR"
    status_code = 400


class OrderNotFoundError(OrderError):
    """Raised when an order cannot be found."""

    error_code = "ORDER_NOT_FOUND"
    status_code = 404

    def __init__(self, order_ref: UUID | str) -> None:
        super().__init__(
            f"Order not found: {order_ref}",
            context={"order": str(order_ref)},
        )


class InvalidOrderTransitionError(OrderError):
    """Raised when an order status change is not allowed."""

    error_code = "INVALID_ORDER_TRANSITION"
    status_code = 409

    def __init__(self, order_id: UUID | str, current: str, target: str) -> None:
        super().__init__(
            f"Order {order_id} cannot move from {current} to {target}",
            context={"order_id": str(order_id), "current": current, "target": target},
        )
