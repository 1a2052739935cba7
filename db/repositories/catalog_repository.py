"""
db/repositories/catalog_repository.py

Persistence layer for catalog points, their parent group and signal types.

The caller controls commit/rollback; this repository only flushes so that
store-assigned keys are available immediately after a write.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.catalog_point import CatalogPoint
from db.models.point_group import PointGroup
from db.models.signal_type import SignalType, SignalTypeInfo
from db.repositories.errors import CatalogStoreError, PointGroupResolutionError


class CatalogRepository:
    """
    Narrow find / create-or-update interface over the catalog tables.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Catalog points
    # ------------------------------------------------------------------

    def get_point_by_tag(self, point_tag: str) -> CatalogPoint | None:
        stmt = select(CatalogPoint).where(CatalogPoint.point_tag == point_tag)
        try:
            return self._session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            raise CatalogStoreError(f"Failed to query catalog point {point_tag!r}: {exc}") from exc

    def save_point(
        self,
        *,
        point_tag: str,
        alternate_tag: str,
        signal_reference: str,
        sequence_index: int,
        group_id: int,
        signal_type_id: int,
        adder: float,
        multiplier: float,
        description: str,
    ) -> tuple[CatalogPoint, bool]:
        """
        Insert or update the point keyed by ``point_tag``.

        Returns the persisted (flushed, not committed) point and a flag that
        is True when the row did not exist before this call.
        """

        point = self.get_point_by_tag(point_tag)
        created = point is None

        if point is None:
            point = CatalogPoint(point_tag=point_tag)
            self._session.add(point)

        point.alternate_tag = alternate_tag
        point.signal_reference = signal_reference
        point.sequence_index = sequence_index
        point.group_id = group_id
        point.signal_type_id = signal_type_id
        point.adder = adder
        point.multiplier = multiplier
        point.description = description

        try:
            self._session.flush()
        except SQLAlchemyError as exc:
            raise CatalogStoreError(f"Failed to save catalog point {point_tag!r}: {exc}") from exc

        return point, created

    # ------------------------------------------------------------------
    # Parent group
    # ------------------------------------------------------------------

    def resolve_group(
        self,
        *,
        reference_name: str,
        acronym: str,
        connection_note: str | None = None,
    ) -> PointGroup:
        """
        Return the group keyed by ``reference_name``, creating it if absent.

        The acronym is refreshed on every call so that renaming the loader
        renames the group while keeping its existing points attached.
        """

        stmt = select(PointGroup).where(PointGroup.reference_name == reference_name)
        try:
            group = self._session.execute(stmt).scalars().first()
            if group is None:
                group = PointGroup(reference_name=reference_name)
                self._session.add(group)

            group.acronym = acronym
            group.protocol = "VirtualInput"
            group.connection_note = connection_note
            group.enabled = True
            self._session.flush()
        except SQLAlchemyError as exc:
            raise PointGroupResolutionError(
                f"Failed to resolve point group {reference_name!r}: {exc}"
            ) from exc

        if group.id is None:
            raise PointGroupResolutionError(f"Point group {reference_name!r} was not assigned an ID")
        return group

    # ------------------------------------------------------------------
    # Signal types
    # ------------------------------------------------------------------

    def get_signal_type(self, acronym: str) -> SignalTypeInfo | None:
        stmt = select(SignalType).where(SignalType.acronym == acronym)
        try:
            record = self._session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            raise CatalogStoreError(f"Failed to query signal type {acronym!r}: {exc}") from exc
        return record.to_info() if record is not None else None
