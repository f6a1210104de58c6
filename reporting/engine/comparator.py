"""
Comparator - month-over-month change of a single metric.

The comparator returns signed magnitudes only. Whether a change is good or
bad news depends on the metric's polarity, which the caller supplies (see
metric_polarity / is_favorable) and which never alters the numbers.
"""

from typing import Iterable, Optional, Union

import structlog

from reporting.models.aggregation import ComparisonUnavailable, MetricDelta
from reporting.models.enums import MetricField, Polarity
from reporting.models.reports import MonthlyReport

from .overrides import read_metric

logger = structlog.get_logger(__name__)

ComparisonResult = Union[MetricDelta, ComparisonUnavailable]

# Metrics where a decrease is the favourable direction
LOWER_IS_BETTER = frozenset({MetricField.MISSED_CALLS_PERCENT})


def previous_period(month: int, year: int) -> tuple[int, int]:
    """(month, year) of the preceding calendar month; January wraps to December."""
    if month == 1:
        return 12, year - 1
    return month - 1, year


def metric_polarity(field: MetricField) -> Polarity:
    if field in LOWER_IS_BETTER:
        return Polarity.LOWER_BETTER
    return Polarity.HIGHER_BETTER


def is_favorable(delta: ComparisonResult, polarity: Polarity) -> Optional[bool]:
    """
    Presentation helper: True for good news, False for bad, None when there
    is nothing to judge (unavailable comparison or no change).
    """
    if not isinstance(delta, MetricDelta) or delta.diff == 0:
        return None
    if polarity is Polarity.LOWER_BETTER:
        return delta.diff < 0
    return delta.diff > 0


class ReportComparator:
    """
    Compares metrics of a report against the report for the preceding month.

    Attributes:
        reports: Snapshot of the reports the caller may see
    """

    def __init__(self, reports: Iterable[MonthlyReport]):
        self._by_period = {}
        for report in reports:
            self._by_period.setdefault(report.period_key, report)

    def previous_report(self, report: MonthlyReport) -> Optional[MonthlyReport]:
        month, year = previous_period(report.month, report.year)
        return self._by_period.get((year, month))

    def delta(
        self,
        current_value: float,
        field: Union[MetricField, str],
        current_report: MonthlyReport,
    ) -> ComparisonResult:
        """
        Change of field from the previous month's report to current_value.

        A missing previous value counts as 0; percent_change is 0 when the
        previous value is 0.

        Returns:
            MetricDelta, or ComparisonUnavailable when there is no report for
            the preceding month
        """
        field = MetricField(field)
        month, year = previous_period(current_report.month, current_report.year)
        label = f"{year}-{month:02d}"
        previous_report = self._by_period.get((year, month))

        if previous_report is None:
            logger.debug(
                "comparison_unavailable",
                report_id=current_report.report_id,
                field=field.value,
                previous_period=label,
            )
            return ComparisonUnavailable(field=field, previous_period=label)

        previous = read_metric(previous_report, field) or 0
        diff = current_value - previous
        percent_change = 0.0 if previous == 0 else diff / previous * 100

        return MetricDelta(
            field=field,
            current=current_value,
            previous=previous,
            diff=diff,
            percent_change=percent_change,
            previous_period=label,
        )

    def delta_for(self, field: Union[MetricField, str], current_report: MonthlyReport) -> ComparisonResult:
        """delta() using the report's own effective value (None counts as 0)."""
        field = MetricField(field)
        return self.delta(read_metric(current_report, field) or 0, field, current_report)
