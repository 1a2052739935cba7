"""
app/services/catalog_reconciler.py

Idempotent upsert of derived point names into the catalog.
"""

from __future__ import annotations

import re

from app.domain.limits import CatalogIdentity, ParentGroupInfo
from db.models.signal_type import SignalTypeInfo
from db.repositories.catalog_repository import CatalogRepository

_DISALLOWED_TAG_CHARS = re.compile(r"[^A-Z0-9\-!_.@#$]", re.IGNORECASE)


def normalize_point_tag(name: str) -> str:
    """
    Uppercase, turn spaces into underscores and drop characters outside
    ``A-Z 0-9 - ! _ . @ # $``. Applying it twice changes nothing.
    """

    return _DISALLOWED_TAG_CHARS.sub("", name.upper().replace(" ", "_"))


def build_signal_reference(group_acronym: str, signal_suffix: str, sequence_index: int) -> str:
    return f"{group_acronym}-{signal_suffix}{sequence_index}"


class CatalogReconciler:
    """
    Resolves point names to catalog identities, creating points on first sight.

    Existing points are updated in place on every call so changes to the
    group, adder, multiplier or signal type reach points created by earlier
    runs. Calls for the same name must not run concurrently.
    """

    def __init__(
        self,
        repository: CatalogRepository,
        *,
        group: ParentGroupInfo,
        signal_type: SignalTypeInfo,
        adder: float,
        multiplier: float,
    ) -> None:
        self._repository = repository
        self._group = group
        self._signal_type = signal_type
        self._adder = adder
        self._multiplier = multiplier

    def resolve(self, name: str, sequence_index: int) -> tuple[CatalogIdentity, bool]:
        """
        Return the catalog identity for ``name`` and whether it was just created.

        Repository errors propagate unchanged; they are fatal to the run.
        """

        point_tag = normalize_point_tag(name)
        group = self._group
        signal_type = self._signal_type

        point, created = self._repository.save_point(
            point_tag=point_tag,
            alternate_tag=name,
            signal_reference=build_signal_reference(group.acronym, signal_type.suffix, sequence_index),
            sequence_index=sequence_index,
            group_id=group.group_id,
            signal_type_id=signal_type.id,
            adder=self._adder,
            multiplier=self._multiplier,
            description=f"{group.acronym} {signal_type.name} #{sequence_index} [{name}]",
        )

        identity = CatalogIdentity(
            signal_id=point.signal_id,
            point_id=point.point_id,
            point_tag=point.point_tag,
            signal_reference=point.signal_reference,
        )
        return identity, created
