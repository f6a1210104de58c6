"""Utility modules for logging."""

from reporting.utils.logging import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
