"""
Override Resolution Layer.

One rule decides the value used for display and aggregation of every
OverridableMetric: the manual override when it is not None, otherwise the
auto-calculated value. Refreshing derived metrics rewrites auto_calculated
only; overrides survive until they are explicitly cleared.

Also hosts METRIC_ACCESSORS, the lookup table from MetricField tags to the
function that reads that metric's effective value from a report.
"""

from typing import Callable, Optional

from reporting.models.enums import MetricField, OverridableField
from reporting.models.reports import BridgeTeamMetrics, MonthlyReport, OverridableMetric


def effective_value(metric: OverridableMetric) -> float:
    """manual_override if present, else auto_calculated."""
    if metric.manual_override is not None:
        return metric.manual_override
    return metric.auto_calculated


def set_override(metric: OverridableMetric, value: Optional[float]) -> OverridableMetric:
    return metric.model_copy(update={"manual_override": value})


def clear_override(metric: OverridableMetric) -> OverridableMetric:
    return metric.model_copy(update={"manual_override": None})


def get_overridable(metrics: BridgeTeamMetrics, field: OverridableField) -> OverridableMetric:
    """Read one overridable leaf of the bridge-team metrics."""
    if field is OverridableField.PARTICIPANTS_RECEIVED:
        return metrics.participants_received
    if field is OverridableField.AVERAGE_DAYS_TO_FIRST_OUTREACH:
        return metrics.average_days_to_first_outreach
    return getattr(metrics.status_counts, field.value)


def replace_overridable(
    metrics: BridgeTeamMetrics, field: OverridableField, metric: OverridableMetric
) -> BridgeTeamMetrics:
    """Return a copy of metrics with one overridable leaf replaced."""
    if field in (
        OverridableField.PARTICIPANTS_RECEIVED,
        OverridableField.AVERAGE_DAYS_TO_FIRST_OUTREACH,
    ):
        return metrics.model_copy(update={field.value: metric})
    status_counts = metrics.status_counts.model_copy(update={field.value: metric})
    return metrics.model_copy(update={"status_counts": status_counts})


def refresh_auto_calculated(
    existing: BridgeTeamMetrics, derived: BridgeTeamMetrics
) -> BridgeTeamMetrics:
    """
    Take every auto_calculated value (and the weekday histogram) from derived
    while keeping every manual_override from existing.
    """
    refreshed = derived.model_copy(deep=True)
    for field in OverridableField:
        current = get_overridable(existing, field)
        fresh = get_overridable(refreshed, field)
        refreshed = replace_overridable(
            refreshed, field, fresh.model_copy(update={"manual_override": current.manual_override})
        )
    return refreshed


def _bridge(field: OverridableField) -> Callable[[MonthlyReport], float]:
    return lambda report: effective_value(get_overridable(report.bridge_team_metrics, field))


METRIC_ACCESSORS: dict[MetricField, Callable[[MonthlyReport], Optional[float]]] = {
    MetricField.RELEASEES_TOTAL: lambda r: r.release_facility_counts.total,
    MetricField.PAM_LYCHNER: lambda r: r.release_facility_counts.pam_lychner,
    MetricField.HUNTSVILLE: lambda r: r.release_facility_counts.huntsville,
    MetricField.PLANE_STATE_JAIL: lambda r: r.release_facility_counts.plane_state_jail,
    MetricField.HAVINS_UNIT: lambda r: r.release_facility_counts.havins_unit,
    MetricField.CLEMENS_UNIT: lambda r: r.release_facility_counts.clemens_unit,
    MetricField.OTHER_FACILITY: lambda r: r.release_facility_counts.other,
    MetricField.INBOUND_CALLS: lambda r: r.call_metrics.inbound,
    MetricField.OUTBOUND_CALLS: lambda r: r.call_metrics.outbound,
    MetricField.MISSED_CALLS_PERCENT: lambda r: r.call_metrics.missed_calls_percent,
    MetricField.HUNG_UP_PRIOR_TO_WELCOME: lambda r: r.call_metrics.hung_up_prior_to_welcome,
    MetricField.HUNG_UP_WITHIN_10_SECONDS: lambda r: r.call_metrics.hung_up_within_10_seconds,
    MetricField.MISSED_DUE_TO_NO_ANSWER: lambda r: r.call_metrics.missed_due_to_no_answer,
    MetricField.ASSIGNED_TO_MENTORSHIP: (
        lambda r: r.mentorship_metrics.participants_assigned_to_mentorship
    ),
    MetricField.PARTICIPANTS_RECEIVED: _bridge(OverridableField.PARTICIPANTS_RECEIVED),
    MetricField.PENDING_BRIDGE: _bridge(OverridableField.PENDING_BRIDGE),
    MetricField.ATTEMPTED_TO_CONTACT: _bridge(OverridableField.ATTEMPTED_TO_CONTACT),
    MetricField.CONTACTED: _bridge(OverridableField.CONTACTED),
    MetricField.UNABLE_TO_CONTACT: _bridge(OverridableField.UNABLE_TO_CONTACT),
    MetricField.AVERAGE_DAYS_TO_FIRST_OUTREACH: _bridge(
        OverridableField.AVERAGE_DAYS_TO_FIRST_OUTREACH
    ),
    MetricField.NEW_DONORS: lambda r: r.donor_data.new_donors,
    MetricField.AMOUNT_FROM_NEW_DONORS: lambda r: r.donor_data.amount_from_new_donors,
    MetricField.CHECKS: lambda r: r.donor_data.checks,
    MetricField.TOTAL_FROM_CHECKS: lambda r: r.donor_data.total_from_checks,
    MetricField.BEGINNING_BALANCE: lambda r: r.financial_data.beginning_balance,
    MetricField.ENDING_BALANCE: lambda r: r.financial_data.ending_balance,
    MetricField.BALANCE_DIFFERENCE: lambda r: r.financial_data.difference,
    MetricField.REELS_POST_VIEWS: lambda r: r.social_media_metrics.reels_post_views,
    MetricField.VIEWS_FROM_NON_FOLLOWERS: lambda r: r.social_media_metrics.views_from_non_followers,
    MetricField.FOLLOWERS: lambda r: r.social_media_metrics.followers,
    MetricField.FOLLOWERS_GAINED: lambda r: r.social_media_metrics.followers_gained,
}


def read_metric(report: MonthlyReport, field: MetricField) -> Optional[float]:
    """Effective value of field on report; None when a manual field is empty."""
    return METRIC_ACCESSORS[field](report)
