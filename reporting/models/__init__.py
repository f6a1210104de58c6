"""
Pydantic v2 data models for the monthly reporting engine.

Model Organization:
    - enums: Enumeration types for consistent classification
    - participants: Read-only participant snapshots and history entries
    - reports: MonthlyReport and its field groups
    - aggregation: Aggregation, comparison and category statistics results

Usage:
    >>> from reporting.models import MonthlyReport, OverridableMetric
    >>> metric = OverridableMetric(auto_calculated=4, manual_override=None)
    >>> metric.effective
    4.0
"""

from .enums import (
    FieldGroup,
    HistoryEntryType,
    MetricField,
    OverridableField,
    ParticipantStatus,
    Polarity,
    ReductionMode,
    ReportingCategory,
    UserRole,
)
from .participants import HistoryEntry, ParticipantRecord
from .reports import (
    BridgeStatusCounts,
    BridgeTeamMetrics,
    CallMetrics,
    DonorData,
    FinancialData,
    FormsByDayOfWeek,
    MentorshipMetrics,
    MonthlyReport,
    OverridableMetric,
    ReleaseFacilityCounts,
    SocialMediaMetrics,
    WinConcernEntry,
)
from .aggregation import (
    AggregatedReport,
    CategoryStats,
    ComparisonUnavailable,
    FieldAggregate,
    MetricDelta,
    NoAggregationData,
)

__all__ = [
    # Enums
    "FieldGroup",
    "HistoryEntryType",
    "MetricField",
    "OverridableField",
    "ParticipantStatus",
    "Polarity",
    "ReductionMode",
    "ReportingCategory",
    "UserRole",
    # Participants
    "HistoryEntry",
    "ParticipantRecord",
    # Reports
    "BridgeStatusCounts",
    "BridgeTeamMetrics",
    "CallMetrics",
    "DonorData",
    "FinancialData",
    "FormsByDayOfWeek",
    "MentorshipMetrics",
    "MonthlyReport",
    "OverridableMetric",
    "ReleaseFacilityCounts",
    "SocialMediaMetrics",
    "WinConcernEntry",
    # Results
    "AggregatedReport",
    "CategoryStats",
    "ComparisonUnavailable",
    "FieldAggregate",
    "MetricDelta",
    "NoAggregationData",
]
