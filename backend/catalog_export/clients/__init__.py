"""Remote HTTP collaborators."""

from catalog_export.clients.catalog_client import CatalogClient

__all__ = ["CatalogClient"]
