"""
app/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.services.limits_loader import LimitsLoader


def get_limits_loader(request: Request) -> LimitsLoader:
    """
    Return the loader created by the application lifespan.
    """

    loader: LimitsLoader | None = getattr(request.app.state, "limits_loader", None)
    if loader is None or not loader.is_initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Limits loader is not initialized.",
        )
    return loader
