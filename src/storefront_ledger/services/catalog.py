from uuid import UUID

from storefront_ledger.domain.catalog import Product
from storefront_ledger.exceptions import MissingTaxCategoryError, ProductNotFoundError
from storefront_ledger.logging_config import get_logger
from storefront_ledger.repositories.interfaces import CatalogRepository
from storefront_ledger.services.interfaces import CatalogService

logger = get_logger(__name__)


class CatalogServiceImpl(CatalogService):
    def __init__(self, catalog_repo: CatalogRepository) -> None:
        self._repo = catalog_repo

    def list_in_stock(self) -> list[Product]:
        return self._repo.list_in_stock_products()

    def add_product(self, product: Product) -> Product:
        # Only legacy rows may lack a category; new products must say what they are.
        if product.tax_category is None:
            raise MissingTaxCategoryError(product.id)
        self._repo.add(product)
        logger.info(
            "product_added",
            product_id=str(product.id),
            category=product.tax_category.value,
        )
        return product

    def get_product(self, product_id: str) -> Product:
        try:
            key = UUID(str(product_id))
        except ValueError:
            raise ProductNotFoundError(product_id) from None
        product = self._repo.get(key)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product
