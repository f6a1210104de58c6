"""
Service composition.

Wires the configured store, participant provider and derivation settings
into a ReportService. Routers receive it through FastAPI's dependency
injection so tests can override it.
"""

from reporting.config import get_settings
from reporting.engine.metric_derivation import MetricDerivationEngine
from reporting.engine.report_lifecycle import ReportService
from reporting.providers import (
    ParticipantProvider,
    StaticParticipantProvider,
    StorageParticipantProvider,
)
from reporting.storage import DuckDBStorage, get_storage


def build_report_service() -> ReportService:
    """Compose a ReportService from application settings."""
    settings = get_settings()
    store = get_storage()

    if isinstance(store, DuckDBStorage):
        participants: ParticipantProvider = StorageParticipantProvider(store)
    else:
        participants = StaticParticipantProvider()

    derivation = MetricDerivationEngine(
        exclude_test_participants=settings.exclude_test_participants,
        auto_calculation_cutoff=settings.auto_calculation_cutoff,
    )
    return ReportService(store=store, participants=participants, derivation=derivation)


def get_report_service() -> ReportService:
    """FastAPI dependency returning the application's ReportService."""
    return build_report_service()


__all__ = ["build_report_service", "get_report_service"]
