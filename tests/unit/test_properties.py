"""
Property-based tests using Hypothesis for the reporting engine.

These tests check invariants that must hold for any participant snapshot or
report set, not just the hand-picked examples in test_engine.
"""

import math
from datetime import datetime

import hypothesis.strategies as st
import pytest
from hypothesis import given, settings

from reporting.engine.aggregation import AggregationEngine
from reporting.engine.comparator import ReportComparator
from reporting.engine.metric_derivation import MetricDerivationEngine, weekday_histogram
from reporting.engine.overrides import effective_value, refresh_auto_calculated
from reporting.models.aggregation import ComparisonUnavailable
from reporting.models.enums import MetricField, ReductionMode
from reporting.models.reports import BridgeTeamMetrics, OverridableMetric
from reporting.utils.parsing import parse_optional_number
from tests.conftest import make_participant, make_report

moments = st.datetimes(min_value=datetime(2023, 10, 1), max_value=datetime(2024, 5, 31))
optional_counts = st.one_of(st.none(), st.integers(min_value=0, max_value=10_000))


@given(submitted=st.lists(moments, max_size=40), month=st.integers(min_value=1, max_value=12))
@settings(max_examples=60)
def test_prop_histogram_sums_to_participants_received(submitted, month):
    """Weekday counts always add up to the month's received count."""
    participants = [make_participant(submitted_at=moment) for moment in submitted]

    metrics = MetricDerivationEngine().calculate_bridge_team_metrics(participants, month, 2024)

    histogram = metrics.forms_by_day_of_week
    assert histogram.total == metrics.participants_received.auto_calculated
    assert histogram.total == sum(1 for m in submitted if m.year == 2024 and m.month == month)


@given(submitted=st.lists(moments, max_size=40))
@settings(max_examples=60)
def test_prop_top_day_has_maximal_count(submitted):
    histogram = weekday_histogram(submitted)
    counts = histogram.model_dump(exclude={"top_day"})

    assert counts[histogram.top_day.lower()] == max(counts.values())


@given(
    auto=st.integers(min_value=0, max_value=1000),
    override=st.one_of(st.none(), st.floats(min_value=-1e6, max_value=1e6, allow_nan=False)),
)
def test_prop_effective_value(auto, override):
    metric = OverridableMetric(auto_calculated=auto, manual_override=override)
    expected = auto if override is None else override
    assert effective_value(metric) == expected


@given(
    overrides=st.lists(st.one_of(st.none(), st.integers(0, 500)), min_size=6, max_size=6),
    derived_auto=st.lists(st.integers(0, 500), min_size=6, max_size=6),
)
def test_prop_refresh_never_touches_overrides(overrides, derived_auto):
    existing = BridgeTeamMetrics()
    derived = BridgeTeamMetrics()
    targets = [
        (existing.participants_received, derived.participants_received),
        (existing.status_counts.pending_bridge, derived.status_counts.pending_bridge),
        (existing.status_counts.attempted_to_contact, derived.status_counts.attempted_to_contact),
        (existing.status_counts.contacted, derived.status_counts.contacted),
        (existing.status_counts.unable_to_contact, derived.status_counts.unable_to_contact),
        (existing.average_days_to_first_outreach, derived.average_days_to_first_outreach),
    ]
    for (old, new), override, auto in zip(targets, overrides, derived_auto):
        old.manual_override = override
        new.auto_calculated = auto

    refreshed = refresh_auto_calculated(existing, derived)

    results = [
        refreshed.participants_received,
        refreshed.status_counts.pending_bridge,
        refreshed.status_counts.attempted_to_contact,
        refreshed.status_counts.contacted,
        refreshed.status_counts.unable_to_contact,
        refreshed.average_days_to_first_outreach,
    ]
    assert [m.manual_override for m in results] == overrides
    assert [m.auto_calculated for m in results] == derived_auto


@given(value=st.one_of(st.text(max_size=12), st.floats(), st.integers(), st.none(), st.booleans()))
def test_prop_parse_never_returns_non_finite(value):
    parsed = parse_optional_number(value)
    assert parsed is None or math.isfinite(parsed)


@given(inbound=st.lists(optional_counts, min_size=1, max_size=12))
@settings(max_examples=60)
def test_prop_average_is_total_over_report_count(inbound):
    reports = [
        make_report(month=i + 1, call_metrics={"inbound": value})
        for i, value in enumerate(inbound)
    ]
    engine = AggregationEngine()

    total = engine.aggregate(reports, ReductionMode.TOTAL).calls.inbound
    average = engine.aggregate(reports, ReductionMode.AVERAGE).calls.inbound

    assert average.value * len(reports) == pytest.approx(total.value)
    assert total.count == average.count == sum(1 for v in inbound if v is not None)


@given(
    current=optional_counts,
    previous=optional_counts,
    has_previous=st.booleans(),
)
def test_prop_comparison_diff(current, previous, has_previous):
    mar = make_report(3, donor_data={"new_donors": current})
    reports = [mar]
    if has_previous:
        reports.append(make_report(2, donor_data={"new_donors": previous}))

    delta = ReportComparator(reports).delta_for(MetricField.NEW_DONORS, mar)

    if not has_previous:
        assert isinstance(delta, ComparisonUnavailable)
        return
    assert delta.diff == (current or 0) - (previous or 0)
    assert math.isfinite(delta.percent_change)
