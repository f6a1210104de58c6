"""API routers for all endpoints."""

from reporting.routers import metrics, reports

__all__ = [
    "reports",
    "metrics",
]
