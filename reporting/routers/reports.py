"""
Monthly reports router - listing, editing, posting, aggregation and comparison.

Wired to:
- ReportService for every read and write
- AggregationEngine for multi-month summaries
- ReportComparator for month-over-month deltas

Board members only ever see posted reports. Category visibility is applied
to every response body before it leaves the router.
"""

from typing import Any, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from reporting.auth.dependencies import get_current_viewer, require_admin
from reporting.engine.access import (
    CATEGORY_AGGREGATE_FIELDS,
    Viewer,
    filter_body,
    visible_categories,
)
from reporting.engine.aggregation import AggregationEngine
from reporting.engine.category_stats import category_stats
from reporting.engine.comparator import ReportComparator, is_favorable, metric_polarity
from reporting.engine.exceptions import (
    ReportAlreadyPostedError,
    ReportNotFoundError,
    StoreUnavailableError,
)
from reporting.engine.report_lifecycle import ReportService, check_call_metrics
from reporting.models.enums import FieldGroup, MetricField, OverridableField, ReductionMode
from reporting.models.reports import MonthlyReport
from reporting.services import get_report_service
from reporting.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

RawNumber = Optional[Union[float, str]]


class FinancialUpdate(BaseModel):
    beginning_balance: RawNumber = None
    ending_balance: RawNumber = None


class OverrideUpdate(BaseModel):
    value: RawNumber = Field(default=None, description="New manual override; null clears it")


class CategoryFieldUpdate(BaseModel):
    value: RawNumber = None


def _http_error(e: Exception) -> HTTPException:
    """Map engine exceptions onto HTTP status codes."""
    if isinstance(e, StoreUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, ReportNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ReportAlreadyPostedError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=422, detail=str(e))


def _serialize(report: MonthlyReport, viewer: Viewer) -> dict:
    body = report.model_dump(mode="json")
    body["label"] = report.label
    return filter_body(viewer, body)


def _visible_reports(service: ReportService, viewer: Viewer) -> list[MonthlyReport]:
    if viewer.is_board_member:
        return service.get_posted_reports()
    return service.list_reports()


def _require_visible(report: Optional[MonthlyReport], viewer: Viewer, missing: str) -> MonthlyReport:
    if report is None or (viewer.is_board_member and not report.is_posted):
        raise HTTPException(status_code=404, detail=f"Report {missing} not found")
    return report


# =============================================================================
# Listing
# =============================================================================


@router.get("/")
async def list_reports(
    year: Optional[int] = None,
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    """
    List reports visible to the caller, oldest period first.

    Args:
        year: Restrict to one calendar year
    """
    reports = _visible_reports(service, viewer)
    if year is not None:
        reports = [r for r in reports if r.year == year]

    logger.info("reports_list", user_id=viewer.user_id, year=year, count=len(reports))

    return {
        "success": True,
        "data": {
            "reports": [_serialize(r, viewer) for r in reports],
            "total": len(reports),
            "visible_categories": [c.value for c in visible_categories(viewer)],
        },
    }


@router.get("/posted")
async def list_posted_reports(
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    reports = service.get_posted_reports()
    return {
        "success": True,
        "data": {
            "reports": [_serialize(r, viewer) for r in reports],
            "total": len(reports),
        },
    }


@router.get("/posted/latest")
async def get_latest_posted_report(
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    """Most recent posted report by period, or null when none is posted."""
    report = service.get_most_recent_posted_report()
    return {
        "success": True,
        "data": _serialize(report, viewer) if report else None,
    }


# =============================================================================
# Aggregation and year view
# =============================================================================


@router.get("/aggregate")
async def aggregate_reports(
    start_month: int = Query(..., ge=1, le=12),
    start_year: int = Query(...),
    end_month: int = Query(..., ge=1, le=12),
    end_year: int = Query(...),
    mode: ReductionMode = ReductionMode.TOTAL,
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    """
    Combine every visible report between start and end (inclusive).

    Returns a no_data result, not zeros, when the range holds no reports.
    """
    if (start_year, start_month) > (end_year, end_month):
        raise HTTPException(status_code=422, detail="start period is after end period")

    reports = service.reports_in_range(
        start_month,
        start_year,
        end_month,
        end_year,
        posted_only=viewer.is_board_member,
    )
    result = AggregationEngine().aggregate(reports, mode)

    logger.info(
        "reports_aggregated",
        user_id=viewer.user_id,
        mode=mode.value,
        report_count=result.report_count,
    )

    return {
        "success": True,
        "data": filter_body(viewer, result.model_dump(mode="json"), CATEGORY_AGGREGATE_FIELDS),
    }


@router.get("/categories/{group}/{field}")
async def get_category_stats(
    group: str,
    field: str,
    year: int = Query(...),
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Per-month values plus total/average/count of one field for a year."""
    reports = [r for r in service.list_reports() if r.year == year]
    try:
        stats = category_stats(reports, group, field)
    except ValueError as e:
        raise _http_error(e)

    months = {
        r.month: getattr(getattr(r, group), field, None)
        for r in reports
    }
    return {
        "success": True,
        "data": {
            "year": year,
            "group": group,
            "field": field,
            "months": {str(m): months.get(m) for m in range(1, 13)},
            **stats.model_dump(),
        },
    }


@router.put("/categories/{year}/{month}/{group}/{field}")
async def update_category_field(
    year: int,
    month: int,
    group: str,
    field: str,
    update: CategoryFieldUpdate,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    try:
        report = service.update_category_field(month, year, group, field, update.value)
    except (StoreUnavailableError, ReportNotFoundError, ValueError) as e:
        raise _http_error(e)
    return {"success": True, "data": _serialize(report, viewer)}


@router.post("/year/{year}")
async def create_year(
    year: int,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Ensure all twelve reports of a year exist."""
    try:
        reports = service.get_or_create_year(year, viewer.user_id, viewer.name)
    except StoreUnavailableError as e:
        raise _http_error(e)
    return {
        "success": True,
        "data": {"reports": [_serialize(r, viewer) for r in reports], "total": len(reports)},
    }


# =============================================================================
# Single report by period
# =============================================================================


@router.get("/period/{year}/{month}")
async def get_report_for_month(
    year: int,
    month: int,
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    report = _require_visible(
        service.get_report_for_month(month, year), viewer, f"{year}-{month:02d}"
    )
    return {"success": True, "data": _serialize(report, viewer)}


@router.post("/period/{year}/{month}")
async def get_or_create_report(
    year: int,
    month: int,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Return the report for the month, creating it when absent (idempotent)."""
    if not 1 <= month <= 12:
        raise HTTPException(status_code=422, detail=f"Invalid month: {month}")
    try:
        report = service.get_or_create(month, year, viewer.user_id, viewer.name)
    except StoreUnavailableError as e:
        raise _http_error(e)
    return {"success": True, "data": _serialize(report, viewer)}


# =============================================================================
# Single report by id
# =============================================================================


@router.get("/{report_id}")
async def get_report(
    report_id: str,
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    report = _require_visible(service.get_report(report_id), viewer, report_id)
    return {"success": True, "data": _serialize(report, viewer)}


@router.put("/{report_id}/groups/{group}")
async def update_field_group(
    report_id: str,
    group: FieldGroup,
    value: dict[str, Any] = Body(...),
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """
    Replace one field group wholesale.

    Call-metric subtotal mismatches are returned as warnings; they never
    block the update.
    """
    try:
        if group is FieldGroup.CALL_METRICS:
            report = service.update_call_metrics(report_id, value)
        else:
            report = service.update_field_group(report_id, group, value)
    except (StoreUnavailableError, ReportNotFoundError, ValueError) as e:
        raise _http_error(e)

    warnings = check_call_metrics(report.call_metrics) if group is FieldGroup.CALL_METRICS else []
    return {
        "success": True,
        "data": _serialize(report, viewer),
        "warnings": warnings,
    }


@router.put("/{report_id}/financials")
async def update_financials(
    report_id: str,
    update: FinancialUpdate,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    try:
        report = service.update_financial_data(
            report_id, update.beginning_balance, update.ending_balance
        )
    except (StoreUnavailableError, ReportNotFoundError) as e:
        raise _http_error(e)
    return {"success": True, "data": _serialize(report, viewer)}


@router.put("/{report_id}/overrides/{field}")
async def set_override(
    report_id: str,
    field: OverridableField,
    update: OverrideUpdate,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    try:
        report = service.set_metric_override(report_id, field, update.value)
    except (StoreUnavailableError, ReportNotFoundError) as e:
        raise _http_error(e)
    return {"success": True, "data": _serialize(report, viewer)}


@router.delete("/{report_id}/overrides/{field}")
async def clear_override(
    report_id: str,
    field: OverridableField,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    try:
        report = service.clear_metric_override(report_id, field)
    except (StoreUnavailableError, ReportNotFoundError) as e:
        raise _http_error(e)
    return {"success": True, "data": _serialize(report, viewer)}


@router.post("/{report_id}/refresh")
async def refresh_metrics(
    report_id: str,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    """Recompute derived metrics; manual overrides are kept."""
    try:
        report = service.refresh_auto_calculated_metrics(report_id)
    except (StoreUnavailableError, ReportNotFoundError) as e:
        raise _http_error(e)
    return {"success": True, "data": _serialize(report, viewer)}


@router.post("/{report_id}/post")
async def post_report(
    report_id: str,
    viewer: Viewer = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    try:
        report = service.post(report_id, viewer.user_id, viewer.name)
    except (StoreUnavailableError, ReportNotFoundError, ReportAlreadyPostedError) as e:
        raise _http_error(e)
    return {"success": True, "data": _serialize(report, viewer)}


@router.get("/{report_id}/comparison/{field}")
async def compare_metric(
    report_id: str,
    field: MetricField,
    current_value: Optional[float] = None,
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    """
    Change of one metric against the preceding month's report.

    Args:
        current_value: Value to compare instead of the stored one (e.g. an
            unsaved edit)
    """
    visible = _visible_reports(service, viewer)
    report = _require_visible(service.get_report(report_id), viewer, report_id)

    comparator = ReportComparator(visible)
    if current_value is None:
        delta = comparator.delta_for(field, report)
    else:
        delta = comparator.delta(current_value, field, report)

    polarity = metric_polarity(field)
    return {
        "success": True,
        "data": {
            **delta.model_dump(mode="json"),
            "polarity": polarity.value,
            "is_favorable": is_favorable(delta, polarity),
        },
    }
