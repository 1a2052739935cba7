from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.services.limits_loader import LimitsLoader


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every catalog table must exist before the loader resolves its parent
    group. Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d catalog table(s) are absent from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def _default_loader() -> LimitsLoader:
    from app.config import get_loader_settings

    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    return LimitsLoader(get_loader_settings())


def _build_lifespan(loader_factory: Callable[[], LimitsLoader]):
    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        """Initialize and schedule the limits loader on boot; dispose it on exit."""
        loader = loader_factory()
        loader.initialize()
        loader.start()
        application.state.limits_loader = loader
        logging.getLogger(__name__).info(
            "Limits loader %s started for %s", loader.settings.name, loader.csv_file_path
        )
        try:
            yield
        finally:
            loader.dispose()
            application.state.limits_loader = None
            logging.getLogger(__name__).info("Limits loader disposed")

    return _lifespan


def create_app(loader_factory: Callable[[], LimitsLoader] | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()

    application = FastAPI(
        title="CSV Limits Loader",
        version="1.0.0",
        lifespan=_build_lifespan(loader_factory or _default_loader),
    )

    from app.api.routers import limits_loader_router

    application.include_router(limits_loader_router)

    @application.get("/health")
    def healthcheck() -> dict[str, object]:
        loader: LimitsLoader | None = getattr(application.state, "limits_loader", None)
        return {
            "status": "ok",
            "loader_initialized": bool(loader and loader.is_initialized),
            "schedule_enabled": bool(loader and loader.is_running),
        }

    return application


app = create_app()
