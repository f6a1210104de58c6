"""
Year-at-a-glance statistics for one manual report field.

Unlike the aggregation engine, the average here divides by the number of
months that actually have a value, matching the admin grid's summary row.
"""

from typing import Iterable

from reporting.models.aggregation import CategoryStats
from reporting.models.reports import MonthlyReport

from .report_lifecycle import CATEGORY_GROUPS


def category_stats(reports: Iterable[MonthlyReport], group: str, field: str) -> CategoryStats:
    """
    Total, average and count of the non-null values of group.field.

    Raises:
        ValueError: If group is not a manual field group or field is not one
            of its fields
    """
    if group not in CATEGORY_GROUPS:
        raise ValueError(f"Unsupported category group: {group}")
    if field not in MonthlyReport.model_fields[group].annotation.model_fields:
        raise ValueError(f"Unsupported field {field} for group {group}")

    values = [getattr(getattr(report, group), field) for report in reports]
    values = [value for value in values if value is not None]
    if not values:
        return CategoryStats()

    total = sum(values)
    return CategoryStats(total=total, average=total / len(values), count=len(values))
