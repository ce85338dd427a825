"""Utility helpers for reporting and logging."""

from .logging_setup import configure_logging
from .reporting import ErrorDetail, MetricsExporter, ParseReporter

__all__ = ["ErrorDetail", "MetricsExporter", "ParseReporter", "configure_logging"]
