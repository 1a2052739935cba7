"""
tests/conftest.py

Shared fixtures: an in-memory SQLite catalog seeded with signal types, its
parent group and a recording loader host.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 registers tables on Base.metadata
from app.domain.limits import ParentGroupInfo
from db.base import Base
from db.models.signal_type import KNOWN_SIGNAL_TYPES, SignalType
from db.repositories.catalog_repository import CatalogRepository
from db.session import build_session_factory
from tests.support import RecordingHost


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    factory = build_session_factory(engine)
    with factory() as session:
        session.add_all(
            SignalType(id=info.id, acronym=info.acronym, name=info.name, suffix=info.suffix)
            for info in KNOWN_SIGNAL_TYPES.values()
        )
        session.commit()
    return factory


@pytest.fixture()
def parent_group(session_factory: sessionmaker[Session]) -> ParentGroupInfo:
    with session_factory() as session:
        group = CatalogRepository(session).resolve_group(
            reference_name="CSVLimitsLoader.FileReader!1",
            acronym="LIMITS!CSVLIMITS",
        )
        session.commit()
        return ParentGroupInfo(group_id=group.id, acronym=group.acronym, reference_name=group.reference_name)


@pytest.fixture()
def host() -> RecordingHost:
    return RecordingHost()
