"""
Result models for multi-month aggregation and month-over-month comparison.

Both engines return explicit "nothing to show" models (NoAggregationData,
ComparisonUnavailable) instead of zero-filled results, so callers can tell
"no data" apart from "data that happens to be zero".
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .enums import MetricField, ReductionMode


class FieldAggregate(BaseModel):
    """
    One reduced field.

    Attributes:
        value: Reduced value (sum, average, first or last depending on the field)
        count: Number of selected reports that carried a non-null value
    """

    value: float = 0.0
    count: int = 0


class ReleaseesAggregate(BaseModel):
    total: FieldAggregate = Field(default_factory=FieldAggregate)
    pam_lychner: FieldAggregate = Field(default_factory=FieldAggregate)
    huntsville: FieldAggregate = Field(default_factory=FieldAggregate)
    plane_state_jail: FieldAggregate = Field(default_factory=FieldAggregate)
    havins_unit: FieldAggregate = Field(default_factory=FieldAggregate)
    clemens_unit: FieldAggregate = Field(default_factory=FieldAggregate)
    other: FieldAggregate = Field(default_factory=FieldAggregate)


class CallsAggregate(BaseModel):
    inbound: FieldAggregate = Field(default_factory=FieldAggregate)
    outbound: FieldAggregate = Field(default_factory=FieldAggregate)
    missed_calls_percent: FieldAggregate = Field(default_factory=FieldAggregate)
    hung_up_prior_to_welcome: FieldAggregate = Field(default_factory=FieldAggregate)
    hung_up_within_10_seconds: FieldAggregate = Field(default_factory=FieldAggregate)
    missed_due_to_no_answer: FieldAggregate = Field(default_factory=FieldAggregate)


class MentorshipAggregate(BaseModel):
    participants_assigned_to_mentorship: FieldAggregate = Field(default_factory=FieldAggregate)


class BridgeTeamAggregate(BaseModel):
    participants_received: FieldAggregate = Field(default_factory=FieldAggregate)
    pending_bridge: FieldAggregate = Field(default_factory=FieldAggregate)
    attempted_to_contact: FieldAggregate = Field(default_factory=FieldAggregate)
    contacted: FieldAggregate = Field(default_factory=FieldAggregate)
    unable_to_contact: FieldAggregate = Field(default_factory=FieldAggregate)
    average_days_to_first_outreach: FieldAggregate = Field(default_factory=FieldAggregate)


class DonorsAggregate(BaseModel):
    new_donors: FieldAggregate = Field(default_factory=FieldAggregate)
    amount_from_new_donors: FieldAggregate = Field(default_factory=FieldAggregate)
    checks: FieldAggregate = Field(default_factory=FieldAggregate)
    total_from_checks: FieldAggregate = Field(default_factory=FieldAggregate)


class FinancialsAggregate(BaseModel):
    beginning_balance: FieldAggregate = Field(default_factory=FieldAggregate)
    ending_balance: FieldAggregate = Field(default_factory=FieldAggregate)
    difference: float = 0.0


class SocialMediaAggregate(BaseModel):
    reels_post_views: FieldAggregate = Field(default_factory=FieldAggregate)
    views_from_non_followers: FieldAggregate = Field(default_factory=FieldAggregate)
    followers: FieldAggregate = Field(default_factory=FieldAggregate)
    followers_gained: FieldAggregate = Field(default_factory=FieldAggregate)


class AggregatedReport(BaseModel):
    """Summary of a non-empty, chronologically ordered set of monthly reports."""

    status: Literal["ok"] = "ok"
    mode: ReductionMode
    report_count: int = Field(ge=1, description="Number of months combined")
    first_period: str = Field(description="Label of the earliest month, e.g. 'January 2025'")
    last_period: str = Field(description="Label of the latest month")

    releasees: ReleaseesAggregate
    calls: CallsAggregate
    mentorship: MentorshipAggregate
    bridge_team: BridgeTeamAggregate
    donors: DonorsAggregate
    financials: FinancialsAggregate
    social_media: SocialMediaAggregate


class NoAggregationData(BaseModel):
    """Returned when no reports fall in the selected window."""

    status: Literal["no_data"] = "no_data"
    mode: ReductionMode
    report_count: int = 0
    message: str = "No reports available for the selected period"


class MetricDelta(BaseModel):
    """Signed change of one metric against the preceding month."""

    status: Literal["ok"] = "ok"
    field: MetricField
    current: float
    previous: float
    diff: float
    percent_change: float
    previous_period: str


class ComparisonUnavailable(BaseModel):
    """Returned when the preceding month has no report."""

    status: Literal["unavailable"] = "unavailable"
    field: MetricField
    reason: str = "No report exists for the previous month"
    previous_period: Optional[str] = None


class CategoryStats(BaseModel):
    """Total, average and count of one manual field across a set of reports."""

    total: float = 0.0
    average: float = 0.0
    count: int = 0
