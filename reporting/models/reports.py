"""
Monthly report data models.

A MonthlyReport holds one calendar month of operational metrics. Manual field
groups are nullable numbers entered by staff; derived groups are computed from
participant history and, for the bridge team, wrapped in OverridableMetric so
a manual value can supersede the calculation without losing it.
"""

from datetime import datetime
from typing import Any, ClassVar, Optional, Union

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from reporting.utils.parsing import parse_optional_number


class NullableNumberGroup(BaseModel):
    """
    Base for manual field groups made of independently nullable numbers.

    Every field is passed through parse_optional_number before validation, so
    "", "N/A" and unparseable strings become None instead of failing or
    turning into 0.
    """

    INTEGER_FIELDS: ClassVar[frozenset[str]] = frozenset()

    @field_validator("*", mode="before")
    @classmethod
    def parse_numbers(cls, v: Any, info: ValidationInfo) -> Any:
        return parse_optional_number(v, integer=info.field_name in cls.INTEGER_FIELDS)


class ReleaseFacilityCounts(NullableNumberGroup):
    """Releasees met, per release facility."""

    INTEGER_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"pam_lychner", "huntsville", "plane_state_jail", "havins_unit", "clemens_unit", "other"}
    )

    pam_lychner: Optional[int] = None
    huntsville: Optional[int] = None
    plane_state_jail: Optional[int] = None
    havins_unit: Optional[int] = None
    clemens_unit: Optional[int] = None
    other: Optional[int] = None

    @property
    def total(self) -> int:
        return sum(v for v in self.model_dump().values() if v is not None)


class CallMetrics(NullableNumberGroup):
    """
    Phone line statistics.

    The three hung-up/no-answer percentages should add up to
    missed_calls_percent; see reporting.engine.report_lifecycle.check_call_metrics.
    """

    INTEGER_FIELDS: ClassVar[frozenset[str]] = frozenset({"inbound", "outbound"})

    inbound: Optional[int] = None
    outbound: Optional[int] = None
    missed_calls_percent: Optional[float] = None
    hung_up_prior_to_welcome: Optional[float] = None
    hung_up_within_10_seconds: Optional[float] = None
    missed_due_to_no_answer: Optional[float] = None


class DonorData(NullableNumberGroup):
    INTEGER_FIELDS: ClassVar[frozenset[str]] = frozenset({"new_donors", "checks"})

    new_donors: Optional[int] = None
    amount_from_new_donors: Optional[float] = None
    checks: Optional[int] = None
    total_from_checks: Optional[float] = None


class SocialMediaMetrics(NullableNumberGroup):
    """Social media reach. followers is a point-in-time gauge; followers_gained may be negative."""

    INTEGER_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"reels_post_views", "followers", "followers_gained"}
    )

    reels_post_views: Optional[int] = None
    views_from_non_followers: Optional[float] = None
    followers: Optional[int] = None
    followers_gained: Optional[int] = None


class FinancialData(BaseModel):
    """Account balances for the month; difference is always derived."""

    beginning_balance: Optional[float] = None
    ending_balance: Optional[float] = None
    difference: float = 0.0

    @field_validator("beginning_balance", "ending_balance", mode="before")
    @classmethod
    def parse_balance(cls, v: Any) -> Optional[float]:
        return parse_optional_number(v)

    @classmethod
    def from_balances(
        cls, beginning_balance: Any, ending_balance: Any
    ) -> "FinancialData":
        """Build financial data with difference = (ending or 0) - (beginning or 0)."""
        beginning = parse_optional_number(beginning_balance)
        ending = parse_optional_number(ending_balance)
        return cls(
            beginning_balance=beginning,
            ending_balance=ending,
            difference=(ending or 0) - (beginning or 0),
        )


class MentorshipMetrics(BaseModel):
    participants_assigned_to_mentorship: int = 0


class OverridableMetric(BaseModel):
    """
    A derived number with an optional manual override.

    auto_calculated is never None and keeps integer counts as int.
    manual_override is None when the derived value should be used; any other
    value wins until it is cleared.
    """

    auto_calculated: Union[int, float] = Field(
        default=0, description="Value derived from participant data"
    )
    manual_override: Optional[Union[int, float]] = Field(
        default=None, description="Caller-supplied value that supersedes the derived one"
    )

    @field_validator("auto_calculated", mode="before")
    @classmethod
    def default_auto(cls, v: Any) -> Any:
        parsed = parse_optional_number(v)
        return 0 if parsed is None else parsed

    @field_validator("manual_override", mode="before")
    @classmethod
    def parse_override(cls, v: Any) -> Any:
        return parse_optional_number(v)

    @property
    def effective(self) -> Union[int, float]:
        if self.manual_override is not None:
            return self.manual_override
        return self.auto_calculated


class BridgeStatusCounts(BaseModel):
    """Status-change events per bridge status within the month."""

    pending_bridge: OverridableMetric = Field(default_factory=OverridableMetric)
    attempted_to_contact: OverridableMetric = Field(default_factory=OverridableMetric)
    contacted: OverridableMetric = Field(default_factory=OverridableMetric)
    unable_to_contact: OverridableMetric = Field(default_factory=OverridableMetric)


class FormsByDayOfWeek(BaseModel):
    """Intake form submissions per weekday plus the busiest day's label."""

    monday: int = 0
    tuesday: int = 0
    wednesday: int = 0
    thursday: int = 0
    friday: int = 0
    saturday: int = 0
    sunday: int = 0
    top_day: str = "Monday"

    @property
    def total(self) -> int:
        return (
            self.monday + self.tuesday + self.wednesday + self.thursday
            + self.friday + self.saturday + self.sunday
        )


class BridgeTeamMetrics(BaseModel):
    participants_received: OverridableMetric = Field(default_factory=OverridableMetric)
    status_counts: BridgeStatusCounts = Field(default_factory=BridgeStatusCounts)
    average_days_to_first_outreach: OverridableMetric = Field(default_factory=OverridableMetric)
    forms_by_day_of_week: FormsByDayOfWeek = Field(default_factory=FormsByDayOfWeek)


class WinConcernEntry(BaseModel):
    title: str = ""
    body: str = ""


class MonthlyReport(BaseModel):
    """
    One calendar month of organizational metrics.

    Exactly one report exists per (month, year). Posting is one-directional:
    once is_posted is True the posted_* stamps never change.

    Attributes:
        report_id: Opaque identifier, report_<year>_<month>_<created ms>
        month: Calendar month, 1-12
        year: Calendar year
        release_facility_counts: Releasees met per facility (manual)
        call_metrics: Phone line statistics (manual)
        mentorship_metrics: Participants assigned to a mentor (derived)
        bridge_team_metrics: Bridge team activity (derived, overridable)
        donor_data: New donors and checks (manual)
        financial_data: Balances (manual) and their difference (derived)
        social_media_metrics: Social reach (manual)
        wins: Highlights, conventionally at most five
        concerns: Issues, conventionally at most five
        is_posted: True once published to board members
    """

    report_id: str = Field(description="Opaque report identifier")
    month: int = Field(ge=1, le=12, description="Calendar month (1-12)")
    year: int = Field(description="Calendar year")

    release_facility_counts: ReleaseFacilityCounts = Field(default_factory=ReleaseFacilityCounts)
    call_metrics: CallMetrics = Field(default_factory=CallMetrics)
    mentorship_metrics: MentorshipMetrics = Field(default_factory=MentorshipMetrics)
    bridge_team_metrics: BridgeTeamMetrics = Field(default_factory=BridgeTeamMetrics)
    donor_data: DonorData = Field(default_factory=DonorData)
    financial_data: FinancialData = Field(default_factory=FinancialData)
    social_media_metrics: SocialMediaMetrics = Field(default_factory=SocialMediaMetrics)

    wins: list[WinConcernEntry] = Field(default_factory=list)
    concerns: list[WinConcernEntry] = Field(default_factory=list)

    is_posted: bool = False
    posted_at: Optional[datetime] = None
    posted_by: Optional[str] = None
    posted_by_name: Optional[str] = None

    created_by: str = ""
    created_by_name: str = ""
    created_at: datetime
    updated_at: datetime

    @property
    def period_key(self) -> tuple[int, int]:
        """Sort key ordering reports chronologically."""
        return (self.year, self.month)

    @property
    def label(self) -> str:
        return datetime(self.year, self.month, 1).strftime("%B %Y")
