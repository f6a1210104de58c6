"""
Metric Derivation Engine - per-month metrics from participant history.

All functions here are pure: the same participant snapshot and month always
produce the same metrics. Derived values land in the auto_calculated side of
OverridableMetric; manual overrides are never produced here.

Derived metrics:
1. participants_received: intake forms submitted in the month
2. forms_by_day_of_week: weekday histogram of those submissions + top_day
3. status_counts: status_change events into each bridge status
4. average_days_to_first_outreach: mean whole days from submission to contact
5. participants_assigned_to_mentorship: mentor assignments in the month
"""

import math
from datetime import date, datetime
from typing import Iterable, Optional

import structlog

from reporting.models.enums import ParticipantStatus
from reporting.models.participants import ParticipantRecord
from reporting.models.reports import (
    BridgeStatusCounts,
    BridgeTeamMetrics,
    FormsByDayOfWeek,
    MentorshipMetrics,
    OverridableMetric,
)

from .event_log import EventLogReader, WindowedEventLog, month_window

logger = structlog.get_logger(__name__)

# Histogram key order; also the tie-break order for top_day.
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

SECONDS_PER_DAY = 86400

STATUS_COUNT_FIELDS = {
    "pending_bridge": ParticipantStatus.PENDING_BRIDGE.value,
    "attempted_to_contact": ParticipantStatus.BRIDGE_ATTEMPTED.value,
    "contacted": ParticipantStatus.BRIDGE_CONTACTED.value,
    "unable_to_contact": ParticipantStatus.BRIDGE_UNABLE.value,
}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def weekday_histogram(moments: Iterable[datetime]) -> FormsByDayOfWeek:
    """
    Count moments per weekday and label the busiest day.

    top_day is the capitalized name of the weekday with the strictly greatest
    count; on a tie the weekday earliest in WEEKDAYS wins.
    """
    counts = dict.fromkeys(WEEKDAYS, 0)
    for moment in moments:
        counts[WEEKDAYS[moment.weekday()]] += 1

    top = WEEKDAYS[0]
    for day in WEEKDAYS[1:]:
        if counts[day] > counts[top]:
            top = day

    return FormsByDayOfWeek(**counts, top_day=top.capitalize())


def average_days_to_first_outreach(log: WindowedEventLog) -> int:
    """
    Mean whole days between submission and each in-window bridge_contacted event.

    Each event contributes floor((contacted_at - submitted_at) / 1 day);
    events whose participant has no submitted_at are skipped. The mean is
    rounded half-up; 0 when there are no qualifying events.
    """
    total_days = 0
    count = 0
    for participant, entry in log.status_changes_to(ParticipantStatus.BRIDGE_CONTACTED.value):
        if participant.submitted_at is None:
            continue
        elapsed = (entry.created_at - participant.submitted_at).total_seconds()
        total_days += math.floor(elapsed / SECONDS_PER_DAY)
        count += 1

    if count == 0:
        return 0
    return round_half_up(total_days / count)


class MetricDerivationEngine:
    """
    Computes the derived side of a monthly report from a participant snapshot.

    Attributes:
        reader: EventLogReader used to window participant activity
        auto_calculation_cutoff: Months starting before this date get zeroed
            bridge-team metrics (to be entered manually through overrides)
    """

    def __init__(
        self,
        exclude_test_participants: bool = False,
        auto_calculation_cutoff: Optional[date] = None,
    ):
        self.reader = EventLogReader(exclude_test_participants=exclude_test_participants)
        self.auto_calculation_cutoff = auto_calculation_cutoff

    def window(
        self, participants: Iterable[ParticipantRecord], month: int, year: int
    ) -> WindowedEventLog:
        start, end = month_window(month, year)
        return self.reader.events_in_window(participants, start, end)

    def is_auto_calculated(self, month: int, year: int) -> bool:
        if self.auto_calculation_cutoff is None:
            return True
        return date(year, month, 1) >= self.auto_calculation_cutoff

    def calculate_mentorship_metrics(
        self, participants: Iterable[ParticipantRecord], month: int, year: int
    ) -> MentorshipMetrics:
        """Count participants assigned to a mentor during the month."""
        log = self.window(participants, month, year)
        return MentorshipMetrics(participants_assigned_to_mentorship=len(log.assigned_to_mentor))

    def calculate_bridge_team_metrics(
        self, participants: Iterable[ParticipantRecord], month: int, year: int
    ) -> BridgeTeamMetrics:
        """
        Derive bridge-team metrics for one month.

        Status counts count status_change events, not distinct participants:
        a participant moved into the same status twice in the month counts
        twice. All overrides in the result are None.
        """
        if not self.is_auto_calculated(month, year):
            logger.info(
                "bridge_metrics_before_cutoff",
                month=month,
                year=year,
                cutoff=self.auto_calculation_cutoff.isoformat(),
            )
            return BridgeTeamMetrics()

        log = self.window(participants, month, year)

        status_counts = BridgeStatusCounts(
            **{
                field: OverridableMetric(auto_calculated=len(log.status_changes_to(status)))
                for field, status in STATUS_COUNT_FIELDS.items()
            }
        )

        metrics = BridgeTeamMetrics(
            participants_received=OverridableMetric(auto_calculated=len(log.submitted)),
            status_counts=status_counts,
            average_days_to_first_outreach=OverridableMetric(
                auto_calculated=average_days_to_first_outreach(log)
            ),
            forms_by_day_of_week=weekday_histogram(p.submitted_at for p in log.submitted),
        )

        logger.info(
            "bridge_metrics_derived",
            month=month,
            year=year,
            participants_received=len(log.submitted),
            status_changes=len(log.status_changes),
            top_day=metrics.forms_by_day_of_week.top_day,
        )
        return metrics
