"""Product catalog - registered products and their kinds.

Loads from config/products.yaml and resolves full product identifiers
("<bundle_id>.<name>") to product definitions.
"""

from typing import Dict, List, Optional

from iap_orchestrator.config import Config, get_config
from iap_orchestrator.models import ProductDefinition, ProductKind


class ProductNotFoundError(Exception):
    """Raised when a product is not found in the catalog."""

    pass


class ProductCatalog:
    """Catalog of registered products.

    Read-only after load; safe to share between coroutines.
    """

    def __init__(self, config: Optional[Config] = None):
        """Initialize product catalog.

        Args:
            config: Configuration instance. If not provided, uses global config.
        """
        self._config = config or get_config()
        self._products_by_id: Dict[str, ProductDefinition] = {}
        self._load_products()

    def _load_products(self) -> None:
        """Index configured products by full identifier."""
        self._products_by_id.clear()
        for product in self._config.products.products:
            self._products_by_id[self.identifier_for(product.name)] = product

    @property
    def bundle_id(self) -> str:
        return self._config.bundle_id

    def identifier_for(self, name: str) -> str:
        """Compose the full product identifier for a local product name.

        Raises:
            ValueError: If name is empty
        """
        if not name:
            raise ValueError("Product name must be non-empty")
        return f"{self._config.bundle_id}.{name}"

    def get_by_id(self, product_id: str) -> ProductDefinition:
        """Get product definition by full identifier.

        Raises:
            ProductNotFoundError: If product ID not found
        """
        product = self._products_by_id.get(product_id)
        if product is None:
            raise ProductNotFoundError(
                f"Product not found: {product_id}. "
                f"Available products: {list(self._products_by_id.keys())}"
            )
        return product

    def kind_for(self, product_id: str) -> ProductKind:
        """Get the configured kind of a product.

        Raises:
            ProductNotFoundError: If product ID not found
        """
        return self.get_by_id(product_id).kind

    def get_all_product_ids(self) -> List[str]:
        """Get list of all full product identifiers."""
        return list(self._products_by_id.keys())

    def __len__(self) -> int:
        return len(self._products_by_id)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._products_by_id

    def __repr__(self) -> str:
        return f"ProductCatalog(bundle_id={self.bundle_id!r}, products={len(self._products_by_id)})"


# Global catalog instance
_catalog_instance: Optional[ProductCatalog] = None


def get_product_catalog(config: Optional[Config] = None) -> ProductCatalog:
    """Get global product catalog instance (singleton).

    Args:
        config: Optional configuration instance (only used on first call)
    """
    global _catalog_instance
    if _catalog_instance is None:
        _catalog_instance = ProductCatalog(config)
    return _catalog_instance


def reset_product_catalog() -> None:
    """Drop the global catalog instance (useful for testing)."""
    global _catalog_instance
    _catalog_instance = None
