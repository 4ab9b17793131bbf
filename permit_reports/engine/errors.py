"""Exception types raised by the report engine."""

from __future__ import annotations


class ReportEngineError(RuntimeError):
    """Base class for report engine failures."""


class ReportExportError(ReportEngineError):
    """Raised when a report file cannot be rendered or written."""


class UnknownReportKindError(ReportEngineError, ValueError):
    """Raised when a report kind has no registered layout."""
