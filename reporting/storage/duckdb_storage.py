"""
DuckDB storage implementation for monthly reports and participant snapshots.

Each report is stored as a JSON document keyed by report_id, mirroring the
document-database layout the rest of the application uses. Participants are
stored the same way so a standalone deployment can derive metrics without the
live participant service.

Key features:
- Thread-safe connection handling with per-thread connections
- Automatic schema creation
- Last-writer-wins document writes (no optimistic locking)
- Comprehensive error handling with structured logging
"""

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import duckdb
import structlog

from reporting.models.participants import ParticipantRecord
from reporting.models.reports import MonthlyReport

from .base import ReportStore, StorageError, serialize_fields

logger = structlog.get_logger(__name__)


class DuckDBStorage(ReportStore):
    """
    DuckDB implementation of the report store.

    Attributes:
        db_path: Path to the DuckDB database file
        _local: Thread-local storage for per-thread connections
        _lock: Thread lock for schema operations
        _write_lock: Serializes read-merge-write cycles within the process
        _initialized: Flag tracking whether schema is initialized
    """

    def __init__(self, db_path: str = "./data/reporting.duckdb"):
        """
        Initialize DuckDB storage backend.

        Args:
            db_path: Path to DuckDB database file
        """
        super().__init__()
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._lock = threading.Lock()
        self._write_lock = threading.RLock()
        self._initialized = False

        logger.info("duckdb_storage_initialized", db_path=str(self.db_path))

        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB connection.

        Yields:
            DuckDB connection instance

        Raises:
            StorageError: If connection cannot be established
        """
        if not hasattr(self._local, "connection"):
            try:
                self._local.connection = duckdb.connect(str(self.db_path))
                logger.debug("duckdb_connection_created", thread_id=threading.get_ident())
            except Exception as e:
                logger.error("duckdb_connection_failed", error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        yield self._local.connection

    def _initialize_schema(self):
        """
        Create report and participant tables. Idempotent.

        Raises:
            StorageError: If schema creation fails
        """
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS monthly_reports (
                            report_id VARCHAR PRIMARY KEY,
                            month INTEGER NOT NULL,
                            year INTEGER NOT NULL,
                            is_posted BOOLEAN NOT NULL DEFAULT FALSE,
                            document JSON NOT NULL,
                            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_monthly_reports_period
                        ON monthly_reports(year, month)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS participants (
                            participant_id VARCHAR PRIMARY KEY,
                            document JSON NOT NULL,
                            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                        )
                    """)

                    self._initialized = True

            except Exception as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    def clear_for_testing(self) -> None:
        """Delete every row. Only honoured when TESTING is set."""
        import os
        if not os.environ.get("TESTING"):
            return
        with self._get_connection() as conn:
            conn.execute("DELETE FROM monthly_reports")
            conn.execute("DELETE FROM participants")

    # =========================================================================
    # Report documents
    # =========================================================================

    def get(self, report_id: str) -> Optional[MonthlyReport]:
        """Read a report document by ID."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT document FROM monthly_reports WHERE report_id = ? LIMIT 1",
                    [report_id],
                ).fetchone()
        except Exception as e:
            logger.error("read_report_failed", report_id=report_id, error=str(e))
            raise StorageError(f"Failed to read report: {e}") from e

        if not row:
            return None
        return MonthlyReport.model_validate(json.loads(row[0]))

    def set(self, report_id: str, report: MonthlyReport) -> None:
        """Write (insert or replace) a report document."""
        self._write_document(report_id, report.model_dump(mode="json"))
        logger.info(
            "report_written",
            report_id=report_id,
            month=report.month,
            year=report.year,
        )
        self._notify()

    def patch(self, report_id: str, fields: dict[str, Any]) -> Optional[MonthlyReport]:
        """Merge top-level fields into an existing report document."""
        with self._write_lock:
            existing = self.get(report_id)
            if existing is None:
                logger.warning("patch_report_missing", report_id=report_id)
                return None

            document = existing.model_dump(mode="json")
            document.update(serialize_fields(fields))
            updated = MonthlyReport.model_validate(document)

            self._write_document(report_id, updated.model_dump(mode="json"))
        logger.info("report_patched", report_id=report_id, fields=sorted(fields))
        self._notify()
        return updated

    def list_reports(self) -> list[MonthlyReport]:
        """Read every report ordered by period."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT document FROM monthly_reports ORDER BY year, month"
                ).fetchall()
        except Exception as e:
            logger.error("list_reports_failed", error=str(e))
            raise StorageError(f"Failed to list reports: {e}") from e

        return [MonthlyReport.model_validate(json.loads(row[0])) for row in rows]

    def find_by_period(self, month: int, year: int) -> Optional[MonthlyReport]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    """
                    SELECT document FROM monthly_reports
                    WHERE month = ? AND year = ?
                    ORDER BY report_id
                    LIMIT 1
                    """,
                    [month, year],
                ).fetchone()
        except Exception as e:
            logger.error("find_report_failed", month=month, year=year, error=str(e))
            raise StorageError(f"Failed to find report: {e}") from e

        if not row:
            return None
        return MonthlyReport.model_validate(json.loads(row[0]))

    def _write_document(self, report_id: str, document: dict) -> None:
        """
        Update the row for report_id in place, inserting it only when absent.

        month and year never change for an existing report, so the period
        index is never rewritten and readers always see one row per report.
        """
        try:
            with self._write_lock, self._get_connection() as conn:
                result = conn.execute(
                    """
                    UPDATE monthly_reports
                    SET is_posted = ?, document = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE report_id = ?
                    """,
                    [document.get("is_posted", False), json.dumps(document), report_id],
                ).fetchone()
                if result and result[0]:
                    return
                conn.execute(
                    """
                    INSERT INTO monthly_reports (
                        report_id, month, year, is_posted, document, updated_at
                    ) VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                    """,
                    [
                        report_id,
                        document["month"],
                        document["year"],
                        document.get("is_posted", False),
                        json.dumps(document),
                    ],
                )
        except Exception as e:
            logger.error("write_report_failed", report_id=report_id, error=str(e))
            raise StorageError(f"Failed to write report: {e}") from e

    # =========================================================================
    # Participant snapshots
    # =========================================================================

    def write_participants(self, participants: list[ParticipantRecord]) -> int:
        """Upsert participant snapshots. Returns the number written."""
        try:
            with self._write_lock, self._get_connection() as conn:
                for participant in participants:
                    document = participant.model_dump_json()
                    result = conn.execute(
                        "UPDATE participants SET document = ? WHERE participant_id = ?",
                        [document, participant.participant_id],
                    ).fetchone()
                    if result and result[0]:
                        continue
                    conn.execute(
                        "INSERT INTO participants (participant_id, document) VALUES (?, ?)",
                        [participant.participant_id, document],
                    )
        except Exception as e:
            logger.error("write_participants_failed", error=str(e))
            raise StorageError(f"Failed to write participants: {e}") from e

        logger.info("participants_written", count=len(participants))
        return len(participants)

    def read_participants(self) -> list[ParticipantRecord]:
        """Read every participant snapshot."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT document FROM participants ORDER BY participant_id"
                ).fetchall()
        except Exception as e:
            logger.error("read_participants_failed", error=str(e))
            raise StorageError(f"Failed to read participants: {e}") from e

        return [ParticipantRecord.model_validate_json(row[0]) for row in rows]
