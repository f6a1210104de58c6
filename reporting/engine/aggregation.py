"""
Aggregation Engine - combine monthly reports into one summary.

Reduction rules:
- Default: sum of each report's non-null (effective) value; in average mode
  the sum is divided by the number of selected reports.
- financial_data.beginning_balance: first report's value in average mode,
  sum in total mode.
- financial_data.ending_balance: last report's value in average mode, sum in
  total mode.
- social_media_metrics.followers: last report's value in every mode.

Every field carries the number of reports that had a non-null value so the
caller can show "N of M months had data". An empty selection produces
NoAggregationData, never a zero-filled summary.
"""

from typing import Callable, Iterable, Optional, Sequence, Union

import structlog

from reporting.models.aggregation import (
    AggregatedReport,
    BridgeTeamAggregate,
    CallsAggregate,
    DonorsAggregate,
    FieldAggregate,
    FinancialsAggregate,
    MentorshipAggregate,
    NoAggregationData,
    ReleaseesAggregate,
    SocialMediaAggregate,
)
from reporting.models.enums import MetricField, ReductionMode
from reporting.models.reports import MonthlyReport

from .overrides import read_metric

logger = structlog.get_logger(__name__)

Extractor = Callable[[MonthlyReport], Optional[float]]

AggregationResult = Union[AggregatedReport, NoAggregationData]


def _values(reports: Sequence[MonthlyReport], field: MetricField) -> list[Optional[float]]:
    return [read_metric(report, field) for report in reports]


def _count(values: Iterable[Optional[float]]) -> int:
    return sum(1 for v in values if v is not None)


class AggregationEngine:
    """
    Reduces an ordered set of monthly reports under a reduction mode.

    Reports are sorted chronologically before reduction, so "first" and
    "last" always mean the earliest and latest month of the selection.
    """

    def aggregate(
        self,
        reports: Iterable[MonthlyReport],
        mode: Union[ReductionMode, str] = ReductionMode.TOTAL,
    ) -> AggregationResult:
        """
        Aggregate reports into one summary.

        Args:
            reports: Monthly reports in the selected window
            mode: ReductionMode.TOTAL or ReductionMode.AVERAGE

        Returns:
            AggregatedReport, or NoAggregationData when reports is empty
        """
        mode = ReductionMode(mode)
        ordered = sorted(reports, key=lambda r: r.period_key)

        if not ordered:
            logger.info("aggregation_empty", mode=mode.value)
            return NoAggregationData(mode=mode)

        reduce = self._reducer(ordered, mode)

        releasees = ReleaseesAggregate(
            pam_lychner=reduce(MetricField.PAM_LYCHNER),
            huntsville=reduce(MetricField.HUNTSVILLE),
            plane_state_jail=reduce(MetricField.PLANE_STATE_JAIL),
            havins_unit=reduce(MetricField.HAVINS_UNIT),
            clemens_unit=reduce(MetricField.CLEMENS_UNIT),
            other=reduce(MetricField.OTHER_FACILITY),
        )
        facilities = [
            releasees.pam_lychner,
            releasees.huntsville,
            releasees.plane_state_jail,
            releasees.havins_unit,
            releasees.clemens_unit,
            releasees.other,
        ]
        releasees.total = FieldAggregate(
            value=sum(f.value for f in facilities),
            count=sum(
                1
                for report in ordered
                if any(
                    v is not None
                    for v in report.release_facility_counts.model_dump().values()
                )
            ),
        )

        beginning = self._balance(ordered, mode, MetricField.BEGINNING_BALANCE, use_last=False)
        ending = self._balance(ordered, mode, MetricField.ENDING_BALANCE, use_last=True)

        summary = AggregatedReport(
            mode=mode,
            report_count=len(ordered),
            first_period=ordered[0].label,
            last_period=ordered[-1].label,
            releasees=releasees,
            calls=CallsAggregate(
                inbound=reduce(MetricField.INBOUND_CALLS),
                outbound=reduce(MetricField.OUTBOUND_CALLS),
                missed_calls_percent=reduce(MetricField.MISSED_CALLS_PERCENT),
                hung_up_prior_to_welcome=reduce(MetricField.HUNG_UP_PRIOR_TO_WELCOME),
                hung_up_within_10_seconds=reduce(MetricField.HUNG_UP_WITHIN_10_SECONDS),
                missed_due_to_no_answer=reduce(MetricField.MISSED_DUE_TO_NO_ANSWER),
            ),
            mentorship=MentorshipAggregate(
                participants_assigned_to_mentorship=reduce(MetricField.ASSIGNED_TO_MENTORSHIP),
            ),
            bridge_team=BridgeTeamAggregate(
                participants_received=reduce(MetricField.PARTICIPANTS_RECEIVED),
                pending_bridge=reduce(MetricField.PENDING_BRIDGE),
                attempted_to_contact=reduce(MetricField.ATTEMPTED_TO_CONTACT),
                contacted=reduce(MetricField.CONTACTED),
                unable_to_contact=reduce(MetricField.UNABLE_TO_CONTACT),
                average_days_to_first_outreach=reduce(
                    MetricField.AVERAGE_DAYS_TO_FIRST_OUTREACH
                ),
            ),
            donors=DonorsAggregate(
                new_donors=reduce(MetricField.NEW_DONORS),
                amount_from_new_donors=reduce(MetricField.AMOUNT_FROM_NEW_DONORS),
                checks=reduce(MetricField.CHECKS),
                total_from_checks=reduce(MetricField.TOTAL_FROM_CHECKS),
            ),
            financials=FinancialsAggregate(
                beginning_balance=beginning,
                ending_balance=ending,
                difference=ending.value - beginning.value,
            ),
            social_media=SocialMediaAggregate(
                reels_post_views=reduce(MetricField.REELS_POST_VIEWS),
                views_from_non_followers=reduce(MetricField.VIEWS_FROM_NON_FOLLOWERS),
                followers=self._latest(ordered, MetricField.FOLLOWERS),
                followers_gained=reduce(MetricField.FOLLOWERS_GAINED),
            ),
        )

        logger.info(
            "aggregation_computed",
            mode=mode.value,
            report_count=len(ordered),
            first_period=summary.first_period,
            last_period=summary.last_period,
        )
        return summary

    def _reducer(
        self, reports: Sequence[MonthlyReport], mode: ReductionMode
    ) -> Callable[[MetricField], FieldAggregate]:
        divisor = len(reports) if mode is ReductionMode.AVERAGE else 1

        def reduce(field: MetricField) -> FieldAggregate:
            values = _values(reports, field)
            total = sum(v for v in values if v is not None)
            return FieldAggregate(value=total / divisor, count=_count(values))

        return reduce

    def _balance(
        self,
        reports: Sequence[MonthlyReport],
        mode: ReductionMode,
        field: MetricField,
        use_last: bool,
    ) -> FieldAggregate:
        if mode is ReductionMode.TOTAL:
            return self._reducer(reports, mode)(field)
        values = _values(reports, field)
        picked = values[-1] if use_last else values[0]
        return FieldAggregate(value=picked or 0, count=_count(values))

    def _latest(self, reports: Sequence[MonthlyReport], field: MetricField) -> FieldAggregate:
        values = _values(reports, field)
        return FieldAggregate(value=values[-1] or 0, count=_count(values))
