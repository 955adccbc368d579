"""Custom exceptions for the trade_summary package."""
from __future__ import annotations


class SummaryError(RuntimeError):
    """Base error for summary and pivot generation."""


class ConfigError(SummaryError):
    """Raised when the pipeline configuration is invalid."""


class OutputTableMissing(SummaryError):
    """Raised when a pivot's source table is absent from the output workbook."""


class InsufficientData(SummaryError):
    """Raised when a pivot's source has fewer rows than it requires."""


class OutputDestinationError(SummaryError):
    """Raised when the output workbook cannot be created, opened or written."""
