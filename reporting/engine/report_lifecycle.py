"""
Report Record Lifecycle - creation, field-group updates and posting.

ReportService owns every write to monthly reports:
- get_or_create is idempotent per (month, year)
- field groups are replaced wholesale and bump updated_at
- refreshing derived metrics never touches manual overrides
- posting is one-directional; a second post raises ReportAlreadyPostedError

Field-group writes are not coordinated across callers: two people editing the
same field group concurrently simply overwrite each other (last writer wins).
Creation is serialized within the process, so concurrent get_or_create calls
for one month return the same report.

Without a configured store every read returns an empty result and every
write raises StoreUnavailableError.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

import structlog
from pydantic import BaseModel

from reporting.models.enums import FieldGroup, OverridableField
from reporting.models.reports import (
    BridgeTeamMetrics,
    CallMetrics,
    DonorData,
    FinancialData,
    MentorshipMetrics,
    MonthlyReport,
    OverridableMetric,
    ReleaseFacilityCounts,
    SocialMediaMetrics,
    WinConcernEntry,
)
from reporting.providers import ParticipantProvider
from reporting.storage.base import ReportStore

from .exceptions import ReportAlreadyPostedError, ReportNotFoundError, StoreUnavailableError
from .metric_derivation import MetricDerivationEngine
from .overrides import get_overridable, refresh_auto_calculated, replace_overridable

logger = structlog.get_logger(__name__)

GROUP_MODELS: dict[FieldGroup, type[BaseModel]] = {
    FieldGroup.RELEASE_FACILITY_COUNTS: ReleaseFacilityCounts,
    FieldGroup.CALL_METRICS: CallMetrics,
    FieldGroup.DONOR_DATA: DonorData,
    FieldGroup.SOCIAL_MEDIA_METRICS: SocialMediaMetrics,
    FieldGroup.BRIDGE_TEAM_METRICS: BridgeTeamMetrics,
}

# Groups editable one field at a time from the year-at-a-glance grid
CATEGORY_GROUPS = (
    "release_facility_counts",
    "call_metrics",
    "donor_data",
    "financial_data",
    "social_media_metrics",
)

MISSED_CALLS_TOLERANCE = 0.01

# Shared by every ReportService instance in the process
_CREATE_LOCK = threading.Lock()


def check_call_metrics(metrics: CallMetrics) -> list[str]:
    """
    Soft validation of call metrics.

    The hung-up and no-answer percentages should add up to
    missed_calls_percent. A mismatch is reported as a warning message; it
    never blocks the update.
    """
    subtotal = sum(
        v or 0
        for v in (
            metrics.hung_up_prior_to_welcome,
            metrics.hung_up_within_10_seconds,
            metrics.missed_due_to_no_answer,
        )
    )
    entered = metrics.missed_calls_percent or 0
    if abs(subtotal - entered) > MISSED_CALLS_TOLERANCE:
        return [
            f"The subcategories ({subtotal:.1f}%) do not add up to the "
            f"Missed Calls percentage ({entered:.1f}%)."
        ]
    return []


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReportService:
    """
    Caller-facing operations on monthly reports.

    Attributes:
        store: Report store, or None when no backing store is configured
        participants: Provider of participant snapshots for derived metrics
        derivation: Engine computing derived metrics
        clock: Returns the current time (injected for tests)
    """

    def __init__(
        self,
        store: Optional[ReportStore],
        participants: ParticipantProvider,
        derivation: Optional[MetricDerivationEngine] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.participants = participants
        self.derivation = derivation or MetricDerivationEngine()
        self.clock = clock

    # =========================================================================
    # Queries
    # =========================================================================

    def list_reports(self) -> list[MonthlyReport]:
        """Every report, oldest period first. Empty without a store."""
        if self.store is None:
            return []
        return sorted(self.store.list_reports(), key=lambda r: r.period_key)

    def get_report(self, report_id: str) -> Optional[MonthlyReport]:
        if self.store is None:
            return None
        return self.store.get(report_id)

    def get_report_for_month(self, month: int, year: int) -> Optional[MonthlyReport]:
        if self.store is None:
            return None
        return self.store.find_by_period(month, year)

    def get_posted_reports(self) -> list[MonthlyReport]:
        return [r for r in self.list_reports() if r.is_posted]

    def get_most_recent_posted_report(self) -> Optional[MonthlyReport]:
        posted = self.get_posted_reports()
        if not posted:
            return None
        return max(posted, key=lambda r: r.period_key)

    def reports_in_range(
        self,
        start_month: int,
        start_year: int,
        end_month: int,
        end_year: int,
        posted_only: bool = False,
    ) -> list[MonthlyReport]:
        """Reports whose period lies in [start, end] inclusive, oldest first."""
        start = (start_year, start_month)
        end = (end_year, end_month)
        reports = self.get_posted_reports() if posted_only else self.list_reports()
        return [r for r in reports if start <= r.period_key <= end]

    def calculate_mentorship_metrics(self, month: int, year: int) -> MentorshipMetrics:
        return self.derivation.calculate_mentorship_metrics(
            self.participants.snapshot(), month, year
        )

    def calculate_bridge_team_metrics(self, month: int, year: int) -> BridgeTeamMetrics:
        return self.derivation.calculate_bridge_team_metrics(
            self.participants.snapshot(), month, year
        )

    # =========================================================================
    # Creation
    # =========================================================================

    def get_or_create(
        self, month: int, year: int, created_by: str, created_by_name: str
    ) -> MonthlyReport:
        """
        Return the report for (month, year), creating it if none exists.

        A new report has every manual field empty, derived metrics computed
        from the current participant snapshot and is_posted False.

        Raises:
            StoreUnavailableError: If no store is configured
        """
        store = self._require_store()

        # Find and create must not interleave with another creation
        with _CREATE_LOCK:
            existing = store.find_by_period(month, year)
            if existing is not None:
                logger.debug("report_exists", report_id=existing.report_id, month=month, year=year)
                return existing

            participants = self.participants.snapshot()
            now = self.clock()
            report = MonthlyReport(
                report_id=f"report_{year}_{month}_{int(now.timestamp() * 1000)}",
                month=month,
                year=year,
                mentorship_metrics=self.derivation.calculate_mentorship_metrics(
                    participants, month, year
                ),
                bridge_team_metrics=self.derivation.calculate_bridge_team_metrics(
                    participants, month, year
                ),
                created_by=created_by,
                created_by_name=created_by_name,
                created_at=now,
                updated_at=now,
            )
            store.set(report.report_id, report)

        logger.info(
            "report_created",
            report_id=report.report_id,
            month=month,
            year=year,
            created_by=created_by,
        )
        return report

    def get_or_create_year(
        self, year: int, created_by: str, created_by_name: str
    ) -> list[MonthlyReport]:
        """Ensure reports exist for all twelve months of year, January first."""
        return [
            self.get_or_create(month, year, created_by, created_by_name)
            for month in range(1, 13)
        ]

    # =========================================================================
    # Field-group updates
    # =========================================================================

    def update_field_group(
        self,
        report_id: str,
        group: Union[FieldGroup, str],
        value: Any,
    ) -> MonthlyReport:
        """
        Replace one field group wholesale.

        Args:
            report_id: Report to update
            group: Field group; WINS_CONCERNS expects {"wins": [...], "concerns": [...]}
            value: Model instance or plain dict; nullable numbers are parsed
                with parse_optional_number

        Raises:
            StoreUnavailableError: If no store is configured
            ReportNotFoundError: If report_id does not exist
        """
        group = FieldGroup(group)

        if group is FieldGroup.WINS_CONCERNS:
            data = value.model_dump() if isinstance(value, BaseModel) else dict(value)
            fields = {
                "wins": [WinConcernEntry.model_validate(w) for w in data.get("wins") or []],
                "concerns": [WinConcernEntry.model_validate(c) for c in data.get("concerns") or []],
            }
        else:
            model = GROUP_MODELS[group]
            if isinstance(value, BaseModel):
                value = value.model_dump()
            fields = {group.value: model.model_validate(value)}

        report = self._patch(report_id, fields)
        logger.info("report_group_updated", report_id=report_id, group=group.value)
        return report

    def update_release_facility_counts(self, report_id: str, counts: Any) -> MonthlyReport:
        return self.update_field_group(report_id, FieldGroup.RELEASE_FACILITY_COUNTS, counts)

    def update_call_metrics(self, report_id: str, call_metrics: Any) -> MonthlyReport:
        """Replace call metrics; a subtotal mismatch is logged, never rejected."""
        report = self.update_field_group(report_id, FieldGroup.CALL_METRICS, call_metrics)
        for warning in check_call_metrics(report.call_metrics):
            logger.warning("call_metrics_mismatch", report_id=report_id, warning=warning)
        return report

    def update_donor_data(self, report_id: str, donor_data: Any) -> MonthlyReport:
        return self.update_field_group(report_id, FieldGroup.DONOR_DATA, donor_data)

    def update_social_media_metrics(self, report_id: str, metrics: Any) -> MonthlyReport:
        return self.update_field_group(report_id, FieldGroup.SOCIAL_MEDIA_METRICS, metrics)

    def update_bridge_team_metrics(self, report_id: str, metrics: Any) -> MonthlyReport:
        return self.update_field_group(report_id, FieldGroup.BRIDGE_TEAM_METRICS, metrics)

    def update_wins_and_concerns(
        self, report_id: str, wins: list[Any], concerns: list[Any]
    ) -> MonthlyReport:
        return self.update_field_group(
            report_id, FieldGroup.WINS_CONCERNS, {"wins": wins, "concerns": concerns}
        )

    def update_financial_data(
        self, report_id: str, beginning_balance: Any, ending_balance: Any
    ) -> MonthlyReport:
        """Store both balances and recompute difference = (ending or 0) - (beginning or 0)."""
        financial = FinancialData.from_balances(beginning_balance, ending_balance)
        report = self._patch(report_id, {"financial_data": financial})
        logger.info(
            "report_financials_updated",
            report_id=report_id,
            difference=financial.difference,
        )
        return report

    def update_category_field(
        self, month: int, year: int, group: str, field: str, raw_value: Any
    ) -> MonthlyReport:
        """
        Write a single manual field of the report for (month, year).

        Used by the year-at-a-glance grid. "N/A", empty and unparseable input
        is stored as None.

        Raises:
            ValueError: If group or field is not editable this way
            ReportNotFoundError: If no report exists for the month
        """
        if group not in CATEGORY_GROUPS:
            raise ValueError(f"Unsupported category group: {group}")

        self._require_store()
        report = self.get_report_for_month(month, year)
        if report is None:
            raise ReportNotFoundError(f"{year}-{month:02d}")

        current = getattr(report, group)
        if field not in type(current).model_fields or field == "difference":
            raise ValueError(f"Unsupported field {field} for group {group}")

        if group == "financial_data":
            balances = {
                "beginning_balance": current.beginning_balance,
                "ending_balance": current.ending_balance,
                field: raw_value,
            }
            return self.update_financial_data(
                report.report_id, balances["beginning_balance"], balances["ending_balance"]
            )

        data = current.model_dump()
        data[field] = raw_value
        return self.update_field_group(report.report_id, FieldGroup(group), data)

    # =========================================================================
    # Overrides and derived metrics
    # =========================================================================

    def set_metric_override(
        self, report_id: str, field: Union[OverridableField, str], value: Any
    ) -> MonthlyReport:
        """
        Set the manual override of one bridge-team metric.

        value is parsed with parse_optional_number; None (or unparseable
        input) clears the override.
        """
        field = OverridableField(field)
        report = self._get_existing(report_id)
        metrics = report.bridge_team_metrics
        current = get_overridable(metrics, field)
        updated_metric = OverridableMetric.model_validate(
            {"auto_calculated": current.auto_calculated, "manual_override": value}
        )
        updated = self._patch(
            report_id,
            {"bridge_team_metrics": replace_overridable(metrics, field, updated_metric)},
        )
        logger.info(
            "metric_override_set",
            report_id=report_id,
            field=field.value,
            manual_override=updated_metric.manual_override,
        )
        return updated

    def clear_metric_override(
        self, report_id: str, field: Union[OverridableField, str]
    ) -> MonthlyReport:
        return self.set_metric_override(report_id, field, None)

    def refresh_auto_calculated_metrics(self, report_id: str) -> MonthlyReport:
        """
        Recompute mentorship and bridge-team metrics from the current
        participant snapshot. Manual overrides are preserved.
        """
        report = self._get_existing(report_id)
        participants = self.participants.snapshot()

        mentorship = self.derivation.calculate_mentorship_metrics(
            participants, report.month, report.year
        )
        derived = self.derivation.calculate_bridge_team_metrics(
            participants, report.month, report.year
        )
        bridge = refresh_auto_calculated(report.bridge_team_metrics, derived)

        updated = self._patch(
            report_id,
            {"mentorship_metrics": mentorship, "bridge_team_metrics": bridge},
        )
        logger.info("report_metrics_refreshed", report_id=report_id)
        return updated

    # =========================================================================
    # Posting
    # =========================================================================

    def post(self, report_id: str, posted_by: str, posted_by_name: str) -> MonthlyReport:
        """
        Publish a report to board members.

        Raises:
            StoreUnavailableError: If no store is configured
            ReportNotFoundError: If report_id does not exist
            ReportAlreadyPostedError: If the report is already posted; the
                stored report is left untouched
        """
        report = self._get_existing(report_id)
        if report.is_posted:
            logger.warning(
                "report_already_posted",
                report_id=report_id,
                posted_at=report.posted_at.isoformat() if report.posted_at else None,
            )
            raise ReportAlreadyPostedError(report_id)

        now = self.clock()
        updated = self._patch(
            report_id,
            {
                "is_posted": True,
                "posted_at": now,
                "posted_by": posted_by,
                "posted_by_name": posted_by_name,
            },
            now=now,
        )
        logger.info("report_posted", report_id=report_id, posted_by=posted_by)
        return updated

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_store(self) -> ReportStore:
        if self.store is None:
            logger.warning("report_store_unavailable")
            raise StoreUnavailableError()
        return self.store

    def _get_existing(self, report_id: str) -> MonthlyReport:
        report = self._require_store().get(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    def _patch(
        self, report_id: str, fields: dict[str, Any], now: Optional[datetime] = None
    ) -> MonthlyReport:
        store = self._require_store()
        updated = store.patch(report_id, {**fields, "updated_at": now or self.clock()})
        if updated is None:
            raise ReportNotFoundError(report_id)
        return updated
