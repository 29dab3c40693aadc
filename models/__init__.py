"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.catalog_item import CatalogItem, new_catalog_item

__all__ = ["CatalogItem", "new_catalog_item"]
