"""
app/services package marker.
"""

from app.services.catalog_reconciler import CatalogReconciler, normalize_point_tag
from app.services.import_log import ImportLog
from app.services.import_runner import ImportRunner
from app.services.limits_loader import LimitsLoader
from app.services.loader_host import LoaderHost, LoggingLoaderHost
from app.services.value_emitter import ValueEmitter

__all__ = [
    "CatalogReconciler",
    "ImportLog",
    "ImportRunner",
    "LimitsLoader",
    "LoaderHost",
    "LoggingLoaderHost",
    "ValueEmitter",
    "normalize_point_tag",
]
