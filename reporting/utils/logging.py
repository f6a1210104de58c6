"""
Structured logging for the reporting service.

Engine, storage and router modules log snake_case events with keyword
context (report_id, month, year, field). configure_logging routes them
through the stdlib root logger so uvicorn and application events share one
stream, JSON in production and a console layout while developing.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from reporting.config import get_settings

SERVICE_NAME = "monthly-reporting"


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the service name and upper-case severity on every event."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict["severity"] = method_name.upper()
    return event_dict


def add_report_period(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add a sortable YYYY-MM period to events that carry month and year."""
    month, year = event_dict.get("month"), event_dict.get("year")
    if isinstance(month, int) and isinstance(year, int) and "period" not in event_dict:
        event_dict["period"] = f"{year:04d}-{month:02d}"
    return event_dict


def configure_logging() -> None:
    """
    Configure structlog and the stdlib root logger from settings.

    LOG_FORMAT=json is honoured outside dev mode; tests get an uncoloured
    console layout. The request middleware already logs every request, so
    uvicorn's access log is reduced to warnings outside dev mode.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    if not settings.dev_mode:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not settings.testing)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            add_service_context,
            add_report_period,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Logger for a reporting module; pass __name__."""
    return structlog.get_logger(name)
