"""Cart mutations over an explicit cart repository."""

from collections.abc import Iterable

from storefront_ledger.domain.catalog import (
    DEFAULT_SHIPPING_OPTIONS,
    LineItem,
    ShippingSelection,
)
from storefront_ledger.exceptions import InvalidCartStateError
from storefront_ledger.logging_config import get_logger
from storefront_ledger.repositories.interfaces import CartRepository
from storefront_ledger.services.interfaces import CartService, CatalogService

logger = get_logger(__name__)


def get_shipping_option(option_id: str) -> ShippingSelection:
    for option in DEFAULT_SHIPPING_OPTIONS:
        if option.option_id == option_id:
            return option
    raise InvalidCartStateError(
        f"Unknown shipping option: {option_id}",
        context={"option_id": option_id},
    )


class CartServiceImpl(CartService):
    def __init__(self, cart_repo: CartRepository, catalog: CatalogService) -> None:
        self._repo = cart_repo
        self._catalog = catalog

    def items(self) -> list[LineItem]:
        return self._repo.load()

    def add_product(self, product_id: str, quantity: int = 1) -> list[LineItem]:
        """Add a product, or bump its quantity and refresh its current price."""
        if quantity < 1:
            raise InvalidCartStateError(
                "Quantity to add must be at least 1", context={"quantity": quantity}
            )
        product = self._catalog.get_product(product_id)
        items = self._repo.load()
        for item in items:
            if item.product_id == str(product.id):
                item.quantity += quantity
                item.unit_price_ex_tax = product.effective_price
                break
        else:
            items.append(LineItem.from_product(product, quantity))
        self._repo.save(items)
        logger.debug("cart_item_added", product_id=str(product.id), quantity=quantity)
        return items

    def set_quantity(self, product_id: str, quantity: int) -> list[LineItem]:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return self.remove(product_id)
        items = self._repo.load()
        for item in items:
            if item.product_id == product_id:
                item.quantity = quantity
                break
        else:
            raise InvalidCartStateError(
                f"Product {product_id} is not in the cart",
                context={"product_id": product_id},
            )
        self._repo.save(items)
        return items

    def remove(self, product_id: str) -> list[LineItem]:
        items = [item for item in self._repo.load() if item.product_id != product_id]
        self._repo.save(items)
        return items

    def clear(self) -> None:
        self._repo.clear()
        logger.debug("cart_cleared")


def resolve_line_items(
    catalog: CatalogService, lines: Iterable[tuple[str, int]]
) -> list[LineItem]:
    """Build cart lines at current catalog prices from (product id, quantity) pairs."""
    return [
        LineItem.from_product(catalog.get_product(product_id), quantity)
        for product_id, quantity in lines
    ]
