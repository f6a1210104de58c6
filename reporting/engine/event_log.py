"""
Event Log Reader - windowed, read-only view over participant histories.

A participant counts toward intake ("received") metrics when its submitted_at
falls in the window, and toward history-derived metrics whenever one of its
history entries falls in the window, regardless of when the participant was
created. Inputs are never mutated.
"""

import calendar
from datetime import datetime
from typing import Iterable, Optional

import structlog

from reporting.models.enums import HistoryEntryType
from reporting.models.participants import HistoryEntry, ParticipantRecord

logger = structlog.get_logger(__name__)


def month_window(month: int, year: int) -> tuple[datetime, datetime]:
    """
    Inclusive local-time window covering one calendar month.

    Returns:
        (first of month 00:00:00.000, last of month 23:59:59.999)
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59, 999000)
    return start, end


def in_window(moment: Optional[datetime], start: datetime, end: datetime) -> bool:
    return moment is not None and start <= moment <= end


class WindowedEventLog:
    """
    Participant activity that falls inside one closed date interval.

    Attributes:
        start: Window start (inclusive)
        end: Window end (inclusive)
        submitted: Participants whose intake was submitted in the window
        status_changes: (participant, entry) pairs for in-window status changes
        assigned_to_mentor: Participants assigned to a mentor in the window
    """

    def __init__(
        self,
        start: datetime,
        end: datetime,
        submitted: tuple[ParticipantRecord, ...],
        status_changes: tuple[tuple[ParticipantRecord, HistoryEntry], ...],
        assigned_to_mentor: tuple[ParticipantRecord, ...],
    ):
        self.start = start
        self.end = end
        self.submitted = submitted
        self.status_changes = status_changes
        self.assigned_to_mentor = assigned_to_mentor

    def status_changes_to(self, status: str) -> list[tuple[ParticipantRecord, HistoryEntry]]:
        """In-window status change events whose newStatus equals status."""
        return [(p, e) for p, e in self.status_changes if e.new_status == status]


class EventLogReader:
    """Builds WindowedEventLog views from participant snapshots."""

    def __init__(self, exclude_test_participants: bool = False):
        self.exclude_test_participants = exclude_test_participants

    def events_in_window(
        self,
        participants: Iterable[ParticipantRecord],
        start: datetime,
        end: datetime,
    ) -> WindowedEventLog:
        """
        Filter participant activity to the closed interval [start, end].

        Args:
            participants: Point-in-time participant snapshot
            start: Window start (inclusive, naive local time)
            end: Window end (inclusive, naive local time)

        Returns:
            WindowedEventLog with the in-window submissions, status changes
            and mentor assignments
        """
        submitted = []
        status_changes = []
        assigned = []

        for participant in participants:
            if self.exclude_test_participants and participant.is_test_participant:
                continue

            if in_window(participant.submitted_at, start, end):
                submitted.append(participant)

            if in_window(participant.assigned_to_mentor_at, start, end):
                assigned.append(participant)

            for entry in participant.history:
                if entry.type != HistoryEntryType.STATUS_CHANGE.value:
                    continue
                if in_window(entry.created_at, start, end):
                    status_changes.append((participant, entry))

        logger.debug(
            "event_log_windowed",
            start=start.isoformat(),
            end=end.isoformat(),
            submitted=len(submitted),
            status_changes=len(status_changes),
            assigned_to_mentor=len(assigned),
        )

        return WindowedEventLog(
            start=start,
            end=end,
            submitted=tuple(submitted),
            status_changes=tuple(status_changes),
            assigned_to_mentor=tuple(assigned),
        )

    def events_in_month(
        self, participants: Iterable[ParticipantRecord], month: int, year: int
    ) -> WindowedEventLog:
        start, end = month_window(month, year)
        return self.events_in_window(participants, start, end)
