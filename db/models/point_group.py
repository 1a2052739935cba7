"""
db/models/point_group.py

Parent group that owns every catalog point produced by one loader instance.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class PointGroup(Base, TimestampMixin):
    __tablename__ = "point_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    acronym: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Display acronym derived from the group template and loader name",
    )
    reference_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        unique=True,
        comment="Stable cross-reference to the owning loader instance",
    )
    protocol: Mapped[str] = mapped_column(String(50), nullable=False, default="VirtualInput")
    connection_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_point_groups_acronym", "acronym"),)
