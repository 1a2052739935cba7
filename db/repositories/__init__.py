"""
Catalog repository exports.
"""

from db.repositories.catalog_repository import CatalogRepository
from db.repositories.errors import (
    CatalogRepositoryError,
    CatalogStoreError,
    PointGroupResolutionError,
)

__all__ = [
    "CatalogRepository",
    "CatalogRepositoryError",
    "CatalogStoreError",
    "PointGroupResolutionError",
]
