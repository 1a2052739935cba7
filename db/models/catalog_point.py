"""
db/models/catalog_point.py

Named time-series point definitions created from imported limit columns.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin
from db.models.point_group import PointGroup


class CatalogPoint(Base, TimestampMixin):
    __tablename__ = "catalog_points"

    point_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    signal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        unique=True,
        default=uuid.uuid4,
    )
    point_tag: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        unique=True,
        comment="Normalized point tag; lookup key",
    )
    alternate_tag: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
        comment="Tag as derived from the CSV before normalization",
    )
    signal_reference: Mapped[str] = mapped_column(String(200), nullable=False)
    sequence_index: Mapped[int] = mapped_column(Integer, nullable=False)
    group_id: Mapped[int] = mapped_column(
        ForeignKey("point_groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    signal_type_id: Mapped[int] = mapped_column(Integer, nullable=False)
    adder: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    group: Mapped[PointGroup] = relationship(PointGroup)

    __table_args__ = (
        Index("ix_catalog_points_group_id", "group_id"),
        Index("ix_catalog_points_signal_reference", "signal_reference"),
    )
