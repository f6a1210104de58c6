"""
Derived metrics router - preview mentorship and bridge-team metrics for any
month, and load the participant snapshot they are derived from.
"""

from fastapi import APIRouter, Depends, HTTPException

from reporting.auth.dependencies import get_current_viewer, require_admin
from reporting.engine.access import Viewer, can_view_category
from reporting.engine.report_lifecycle import ReportService
from reporting.models.enums import ReportingCategory
from reporting.models.participants import ParticipantRecord
from reporting.services import get_report_service
from reporting.storage import DuckDBStorage, StorageError, get_storage
from reporting.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=422, detail=f"Invalid month: {month}")


def _require_category(viewer: Viewer, category: ReportingCategory) -> None:
    if not can_view_category(viewer, category):
        logger.warning("category_forbidden", user_id=viewer.user_id, category=category.value)
        raise HTTPException(status_code=403, detail=f"No access to {category.value} metrics")


@router.get("/mentorship/{year}/{month}")
async def get_mentorship_metrics(
    year: int,
    month: int,
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    """Mentorship metrics derived from the current participant snapshot."""
    _check_month(month)
    _require_category(viewer, ReportingCategory.MENTORSHIP)

    metrics = service.calculate_mentorship_metrics(month, year)
    return {"success": True, "data": metrics.model_dump(mode="json")}


@router.get("/bridge-team/{year}/{month}")
async def get_bridge_team_metrics(
    year: int,
    month: int,
    viewer: Viewer = Depends(get_current_viewer),
    service: ReportService = Depends(get_report_service),
):
    """
    Bridge-team metrics derived from the current participant snapshot.

    Nothing is written; use the report refresh endpoint to store them.
    """
    _check_month(month)
    _require_category(viewer, ReportingCategory.BRIDGE_TEAM)

    metrics = service.calculate_bridge_team_metrics(month, year)
    return {
        "success": True,
        "data": {
            **metrics.model_dump(mode="json"),
            "auto_calculated": service.derivation.is_auto_calculated(month, year),
        },
    }


@router.put("/participants")
async def load_participants(
    participants: list[ParticipantRecord],
    viewer: Viewer = Depends(require_admin),
):
    """Upsert the participant snapshots used for metric derivation."""
    storage = get_storage()
    if not isinstance(storage, DuckDBStorage):
        raise HTTPException(status_code=503, detail="Participant store not configured")

    try:
        written = storage.write_participants(participants)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("participants_loaded", user_id=viewer.user_id, count=written)
    return {"success": True, "data": {"participants_written": written}}
