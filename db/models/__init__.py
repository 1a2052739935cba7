"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.catalog_point import CatalogPoint
from db.models.point_group import PointGroup
from db.models.signal_type import SignalType

__all__ = [
    "CatalogPoint",
    "PointGroup",
    "SignalType",
]
