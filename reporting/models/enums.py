"""
Enumeration types for the monthly reporting engine.

All enums inherit from str to ensure JSON serialization compatibility.
"""

from enum import Enum


class HistoryEntryType(str, Enum):
    """Kinds of entries recorded in a participant's history."""

    STATUS_CHANGE = "status_change"
    CONTACT_ATTEMPT = "contact_attempt"
    NOTE_ADDED = "note_added"
    FORM_SUBMITTED = "form_submitted"
    ASSIGNMENT_CHANGE = "assignment_change"


class ParticipantStatus(str, Enum):
    """
    Participant workflow statuses.

    Only the four bridge statuses feed report metrics; the rest are carried
    so history entries from the wider system validate.
    """

    PENDING_BRIDGE = "pending_bridge"
    BRIDGE_CONTACTED = "bridge_contacted"
    BRIDGE_ATTEMPTED = "bridge_attempted"
    BRIDGE_UNABLE = "bridge_unable"
    PENDING_MENTOR = "pending_mentor"
    ASSIGNED_MENTOR = "assigned_mentor"
    INITIAL_CONTACT_PENDING = "initial_contact_pending"
    MENTOR_ATTEMPTED = "mentor_attempted"
    MENTOR_UNABLE = "mentor_unable"
    ACTIVE_MENTORSHIP = "active_mentorship"
    UNABLE_TO_CONTACT = "unable_to_contact"
    GRADUATED = "graduated"
    CEASED_CONTACT = "ceased_contact"


class ReductionMode(str, Enum):
    """How several monthly reports are combined into one summary."""

    TOTAL = "total"
    AVERAGE = "average"


class FieldGroup(str, Enum):
    """Top-level report field groups that are replaced wholesale on update."""

    RELEASE_FACILITY_COUNTS = "release_facility_counts"
    CALL_METRICS = "call_metrics"
    DONOR_DATA = "donor_data"
    SOCIAL_MEDIA_METRICS = "social_media_metrics"
    BRIDGE_TEAM_METRICS = "bridge_team_metrics"
    WINS_CONCERNS = "wins_concerns"


class ReportingCategory(str, Enum):
    """Metric categories a viewer may be granted access to."""

    RELEASE_FACILITIES = "release_facilities"
    CALLS = "calls"
    MENTORSHIP = "mentorship"
    BRIDGE_TEAM = "bridge_team"
    DONORS = "donors"
    FINANCIALS = "financials"
    SOCIAL_MEDIA = "social_media"
    WINS_CONCERNS = "wins_concerns"


class UserRole(str, Enum):
    """Application roles relevant to reporting visibility."""

    ADMIN = "admin"
    BRIDGE_TEAM = "bridge_team"
    BRIDGE_TEAM_LEADER = "bridge_team_leader"
    MENTORSHIP_LEADER = "mentorship_leader"
    MENTOR = "mentor"
    VOLUNTEER = "volunteer"
    VOLUNTEER_SUPPORT = "volunteer_support"
    BOARD_MEMBER = "board_member"


class Polarity(str, Enum):
    """Whether an increase of a metric is good news or bad news."""

    HIGHER_BETTER = "higher_better"
    LOWER_BETTER = "lower_better"


class MetricField(str, Enum):
    """
    Closed set of report metrics that can be compared month over month.

    Each tag maps to an accessor in reporting.engine.overrides.METRIC_ACCESSORS.
    """

    # Releasees met
    RELEASEES_TOTAL = "release_facility_counts.total"
    PAM_LYCHNER = "release_facility_counts.pam_lychner"
    HUNTSVILLE = "release_facility_counts.huntsville"
    PLANE_STATE_JAIL = "release_facility_counts.plane_state_jail"
    HAVINS_UNIT = "release_facility_counts.havins_unit"
    CLEMENS_UNIT = "release_facility_counts.clemens_unit"
    OTHER_FACILITY = "release_facility_counts.other"

    # Calls
    INBOUND_CALLS = "call_metrics.inbound"
    OUTBOUND_CALLS = "call_metrics.outbound"
    MISSED_CALLS_PERCENT = "call_metrics.missed_calls_percent"
    HUNG_UP_PRIOR_TO_WELCOME = "call_metrics.hung_up_prior_to_welcome"
    HUNG_UP_WITHIN_10_SECONDS = "call_metrics.hung_up_within_10_seconds"
    MISSED_DUE_TO_NO_ANSWER = "call_metrics.missed_due_to_no_answer"

    # Mentorship
    ASSIGNED_TO_MENTORSHIP = "mentorship_metrics.participants_assigned_to_mentorship"

    # Bridge team (effective values)
    PARTICIPANTS_RECEIVED = "bridge_team_metrics.participants_received"
    PENDING_BRIDGE = "bridge_team_metrics.status_counts.pending_bridge"
    ATTEMPTED_TO_CONTACT = "bridge_team_metrics.status_counts.attempted_to_contact"
    CONTACTED = "bridge_team_metrics.status_counts.contacted"
    UNABLE_TO_CONTACT = "bridge_team_metrics.status_counts.unable_to_contact"
    AVERAGE_DAYS_TO_FIRST_OUTREACH = "bridge_team_metrics.average_days_to_first_outreach"

    # Donors
    NEW_DONORS = "donor_data.new_donors"
    AMOUNT_FROM_NEW_DONORS = "donor_data.amount_from_new_donors"
    CHECKS = "donor_data.checks"
    TOTAL_FROM_CHECKS = "donor_data.total_from_checks"

    # Financials
    BEGINNING_BALANCE = "financial_data.beginning_balance"
    ENDING_BALANCE = "financial_data.ending_balance"
    BALANCE_DIFFERENCE = "financial_data.difference"

    # Social media
    REELS_POST_VIEWS = "social_media_metrics.reels_post_views"
    VIEWS_FROM_NON_FOLLOWERS = "social_media_metrics.views_from_non_followers"
    FOLLOWERS = "social_media_metrics.followers"
    FOLLOWERS_GAINED = "social_media_metrics.followers_gained"


class OverridableField(str, Enum):
    """Bridge-team leaves that carry an auto-calculated value and a manual override."""

    PARTICIPANTS_RECEIVED = "participants_received"
    PENDING_BRIDGE = "pending_bridge"
    ATTEMPTED_TO_CONTACT = "attempted_to_contact"
    CONTACTED = "contacted"
    UNABLE_TO_CONTACT = "unable_to_contact"
    AVERAGE_DAYS_TO_FIRST_OUTREACH = "average_days_to_first_outreach"
