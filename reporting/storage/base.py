"""
Abstract report store interface.

The reporting core reads and writes MonthlyReport documents through this
narrow contract (get / set / patch / list). Implementations are expected to
behave like a document database: last writer wins, no optimistic locking and
no multi-document transactions.

Live updates are exposed through explicit Subscription handles. Whoever
composes the store and the engine owns the handle; the engine itself only
ever sees snapshots.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel

from reporting.models.reports import MonthlyReport

logger = structlog.get_logger(__name__)

SnapshotListener = Callable[[list[MonthlyReport]], None]


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


class Subscription:
    """
    Handle for one snapshot listener attached to a store.

    Closing the handle detaches the listener; closing twice is harmless.
    """

    def __init__(self, store: "ReportStore", listener: SnapshotListener):
        self._store = store
        self._listener = listener
        self.active = True

    def close(self) -> None:
        if self.active:
            self._store._detach(self._listener)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def serialize_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Dump pydantic values in a partial update to JSON-compatible data."""
    serialized: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, BaseModel):
            serialized[key] = value.model_dump(mode="json")
        elif isinstance(value, list):
            serialized[key] = [
                v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value
            ]
        elif hasattr(value, "isoformat"):
            serialized[key] = value.isoformat()
        else:
            serialized[key] = value
    return serialized


class ReportStore(ABC):
    """
    Abstract base class for monthly report persistence.

    Report identifiers are opaque strings (report_<year>_<month>_<ms>). The
    store does not enforce uniqueness of (month, year); ReportService checks
    for an existing report before creating one.
    """

    def __init__(self) -> None:
        self._listeners: list[SnapshotListener] = []
        self._listener_lock = threading.Lock()

    # =========================================================================
    # Document operations
    # =========================================================================

    @abstractmethod
    def get(self, report_id: str) -> Optional[MonthlyReport]:
        """
        Read one report by identifier.

        Returns:
            The report, or None if no document exists for report_id

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    def set(self, report_id: str, report: MonthlyReport) -> None:
        """
        Write a full report document, replacing any existing one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def patch(self, report_id: str, fields: dict[str, Any]) -> Optional[MonthlyReport]:
        """
        Replace the given top-level fields of an existing report.

        Args:
            report_id: Report to update
            fields: Top-level field name to new value (models or plain data)

        Returns:
            The updated report, or None if report_id does not exist

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def list_reports(self) -> list[MonthlyReport]:
        """
        Read every stored report.

        Raises:
            StorageError: If the read fails
        """
        pass

    def find_by_period(self, month: int, year: int) -> Optional[MonthlyReport]:
        """Return the report for (month, year), if one exists."""
        for report in self.list_reports():
            if report.month == month and report.year == year:
                return report
        return None

    # =========================================================================
    # Snapshot subscriptions
    # =========================================================================

    def subscribe(self, listener: SnapshotListener) -> Subscription:
        """
        Attach a listener that receives the full report list after every write.

        The listener is called once immediately with the current snapshot.
        """
        with self._listener_lock:
            self._listeners.append(listener)
        logger.debug("report_listener_attached", listeners=len(self._listeners))
        listener(self.list_reports())
        return Subscription(self, listener)

    def _detach(self, listener: SnapshotListener) -> None:
        with self._listener_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
        logger.debug("report_listener_detached", listeners=len(self._listeners))

    def _notify(self) -> None:
        with self._listener_lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        snapshot = self.list_reports()
        for listener in listeners:
            listener(snapshot)
