"""
Pytest configuration and shared fixtures for the monthly reporting test suite.

Provides model factories, an in-memory report store, a ReportService wired
with a fixed clock, and JWT headers for the API tests.
"""

import os
import tempfile
import uuid as _uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

# Set testing environment BEFORE importing app
# Use temp path (must not exist - DuckDB creates the file).
_test_db_path = os.path.join(
    tempfile.gettempdir(), f"reporting_test_{_uuid.uuid4().hex[:8]}.duckdb"
)
os.environ["TESTING"] = "true"
os.environ["DB_PATH"] = _test_db_path


from reporting.engine.access import Viewer
from reporting.engine.report_lifecycle import ReportService
from reporting.models.enums import HistoryEntryType
from reporting.models.participants import HistoryEntry, ParticipantRecord
from reporting.models.reports import MonthlyReport
from reporting.providers import StaticParticipantProvider
from reporting.storage.base import ReportStore, serialize_fields

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


def make_history_entry(
    created_at: datetime,
    new_status: Optional[str] = None,
    entry_type: str = HistoryEntryType.STATUS_CHANGE.value,
    **overrides,
) -> HistoryEntry:
    """Factory for history entries; status changes carry newStatus metadata."""
    metadata = {"newStatus": new_status} if new_status is not None else {}
    defaults = dict(
        entry_id=str(_uuid.uuid4()),
        type=entry_type,
        created_at=created_at,
        description=f"Status changed to {new_status}" if new_status else "",
        metadata=metadata,
    )
    defaults.update(overrides)
    return HistoryEntry(**defaults)


def make_participant(
    submitted_at: Optional[datetime] = None,
    history: Optional[list[HistoryEntry]] = None,
    first_name: str = "Jordan",
    **overrides,
) -> ParticipantRecord:
    """Factory for participant snapshots."""
    defaults = dict(
        participant_id=str(_uuid.uuid4()),
        first_name=first_name,
        submitted_at=submitted_at,
        history=tuple(history or ()),
    )
    defaults.update(overrides)
    return ParticipantRecord(**defaults)


def make_report(month: int = 1, year: int = 2024, **overrides) -> MonthlyReport:
    """Factory for monthly reports with empty manual groups."""
    defaults = dict(
        report_id=f"report_{year}_{month}_{_uuid.uuid4().hex[:6]}",
        month=month,
        year=year,
        created_by="admin_1",
        created_by_name="Admin One",
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
    defaults.update(overrides)
    return MonthlyReport.model_validate(defaults)


# ---------------------------------------------------------------------------
# In-memory store for unit tests
# ---------------------------------------------------------------------------


class MockReportStore(ReportStore):
    """Dict-backed ReportStore with the same patch semantics as DuckDB."""

    def __init__(self, reports: Optional[list[MonthlyReport]] = None):
        super().__init__()
        self.documents: dict[str, dict[str, Any]] = {}
        self.write_count = 0
        for report in reports or []:
            self.documents[report.report_id] = report.model_dump(mode="json")

    def get(self, report_id):
        document = self.documents.get(report_id)
        return MonthlyReport.model_validate(document) if document else None

    def set(self, report_id, report):
        self.documents[report_id] = report.model_dump(mode="json")
        self.write_count += 1
        self._notify()

    def patch(self, report_id, fields):
        if report_id not in self.documents:
            return None
        document = dict(self.documents[report_id])
        document.update(serialize_fields(fields))
        updated = MonthlyReport.model_validate(document)
        self.documents[report_id] = updated.model_dump(mode="json")
        self.write_count += 1
        self._notify()
        return updated

    def list_reports(self):
        return [MonthlyReport.model_validate(d) for d in self.documents.values()]


class TickingClock:
    """Clock returning FIXED_NOW plus one second per call."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_store():
    return MockReportStore()


@pytest.fixture
def participants():
    return StaticParticipantProvider()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def service(mock_store, participants, clock):
    return ReportService(store=mock_store, participants=participants, clock=clock)


@pytest.fixture
def offline_service(participants):
    """ReportService with no backing store."""
    return ReportService(store=None, participants=participants)


def _token(role: str, **claims) -> str:
    from reporting.auth.jwt import create_viewer_token

    viewer = Viewer(user_id=f"{role}_user", name=f"{role.title()} User", role=role, **claims)
    return create_viewer_token(viewer)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {_token('admin')}"}


@pytest.fixture
def board_headers():
    return {
        "Authorization": f"Bearer {_token('board_member', has_reporting_access=True)}"
    }


@pytest.fixture
def restricted_headers():
    """Board member limited to the calls and financials categories."""
    token = _token(
        "board_member",
        has_reporting_access=True,
        reporting_categories=["calls", "financials"],
    )
    return {"Authorization": f"Bearer {token}"}
