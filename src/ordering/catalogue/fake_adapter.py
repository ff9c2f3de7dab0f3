"""In-memory catalogue for development and testing."""

import json
from pathlib import Path

from ordering.catalogue.port import CatalogueProduct, CatalogueVariant, ProductCatalogue


class InMemoryCatalogue(ProductCatalogue):
    """Catalogue backed by a dict, populated at startup or by tests."""

    def __init__(self, products=None) -> None:
        self._products: dict[str, CatalogueProduct] = {}
        for product in products or []:
            self.add(product)

    def add(self, product: CatalogueProduct) -> CatalogueProduct:
        self._products[str(product.product_id)] = product
        return product

    def add_product(
        self,
        product_id: str,
        name: str,
        base_price: float,
        stock: int = 100,
        is_active: bool = True,
        thumbnail: str | None = None,
        variants=None,
    ) -> CatalogueProduct:
        """Convenience builder; ``variants`` is a list of dicts."""
        return self.add(
            CatalogueProduct(
                product_id=product_id,
                name=name,
                base_price=base_price,
                stock=stock,
                is_active=is_active,
                thumbnail=thumbnail,
                variants=tuple(CatalogueVariant(**v) for v in variants or []),
            )
        )

    @classmethod
    def from_file(cls, path) -> "InMemoryCatalogue":
        """Seed from a JSON list of products. Each entry takes the ``add_product`` arguments."""
        catalogue = cls()
        for entry in json.loads(Path(path).read_text(encoding="utf-8")):
            catalogue.add_product(**entry)
        return catalogue

    def get_product(self, product_id: str) -> CatalogueProduct | None:
        return self._products.get(str(product_id))

    def clear(self) -> None:
        self._products.clear()

    def __len__(self) -> int:
        return len(self._products)
