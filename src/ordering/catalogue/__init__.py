"""Catalogue store factory.

Provides get_catalogue() / set_catalogue() to swap implementations.
``create_app`` installs the catalogue built by load_catalogue() from the
configured seed file; tests install an InMemoryCatalogue directly.
"""

from ordering.catalogue.fake_adapter import InMemoryCatalogue
from ordering.catalogue.port import ProductCatalogue

_current_catalogue: ProductCatalogue | None = None


def get_catalogue() -> ProductCatalogue:
    """Return the current catalogue. Defaults to an empty InMemoryCatalogue."""
    global _current_catalogue
    if _current_catalogue is None:
        _current_catalogue = InMemoryCatalogue()
    return _current_catalogue


def set_catalogue(catalogue: ProductCatalogue) -> None:
    """Install the active catalogue (startup or tests)."""
    global _current_catalogue
    _current_catalogue = catalogue


def reset_catalogue() -> None:
    """Reset to default catalogue."""
    global _current_catalogue
    _current_catalogue = None


def load_catalogue(seed_file: str | None) -> InMemoryCatalogue:
    """The catalogue for a running service, seeded from ``seed_file`` when one is configured."""
    if not seed_file:
        return InMemoryCatalogue()
    return InMemoryCatalogue.from_file(seed_file)
