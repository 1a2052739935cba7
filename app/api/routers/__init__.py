"""
app/api/routers package marker.
"""

from app.api.routers.limits_loader import router as limits_loader_router

__all__ = [
    "limits_loader_router",
]
