"""Package catalog — static records and category definitions."""

from ultrabunt.core.services.catalog.catalog import (  # noqa: F401
    CORE_ONLY_CATEGORIES,
    MINIMAL_CATEGORIES,
    Catalog,
    CatalogError,
    PackageNotFoundError,
)
from ultrabunt.core.services.catalog.data import CATEGORIES, PACKAGES, SNAP_CLASSIC  # noqa: F401
