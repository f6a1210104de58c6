"""
Report storage layer.

ReportStore defines the narrow document contract the reporting core depends
on; DuckDBStorage is the bundled implementation.
"""

from functools import lru_cache
from typing import Optional

from reporting.config import get_settings

from .base import ReportStore, StorageError, Subscription
from .duckdb_storage import DuckDBStorage


@lru_cache
def get_storage() -> Optional[ReportStore]:
    """
    Get cached storage backend instance (singleton).

    Returns:
        The configured ReportStore, or None when no store is configured
    """
    settings = get_settings()
    if not settings.store_enabled:
        return None
    return DuckDBStorage(db_path=settings.db_path)


__all__ = [
    "DuckDBStorage",
    "ReportStore",
    "StorageError",
    "Subscription",
    "get_storage",
]
