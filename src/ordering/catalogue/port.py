"""Catalogue store port (abstract interface).

The product catalogue lives outside the ordering context. Ordering only
needs to read a product, its variants, price and stock when a line is added
to a cart or a quick order is placed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CatalogueVariant:
    variant_id: str
    name: str
    price: float
    sku: str = ""
    color: str | None = None
    size: str | None = None
    stock: int = 0


@dataclass(frozen=True)
class CatalogueProduct:
    product_id: str
    name: str
    base_price: float
    stock: int = 0
    is_active: bool = True
    thumbnail: str | None = None
    images: tuple[str, ...] = ()
    variants: tuple[CatalogueVariant, ...] = field(default_factory=tuple)

    @property
    def primary_image(self) -> str:
        if self.thumbnail:
            return self.thumbnail
        return self.images[0] if self.images else ""

    def variant(self, variant_id) -> CatalogueVariant | None:
        return next((v for v in self.variants if str(v.variant_id) == str(variant_id)), None)


class ProductCatalogue(ABC):
    """Abstract read-only catalogue interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> CatalogueProduct | None:
        """Return the product, or None when it does not exist."""
        ...
