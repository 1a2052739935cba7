"""
Repository-layer exceptions for catalog store access.
"""

from __future__ import annotations


class CatalogRepositoryError(Exception):
    """Base exception for catalog repository failures."""


class CatalogStoreError(CatalogRepositoryError):
    """Raised when the backing store rejects a catalog read or write."""


class PointGroupResolutionError(CatalogRepositoryError):
    """Raised when the parent group cannot be created or re-read."""
