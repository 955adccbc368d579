"""Custom exceptions for the sheet_harvest package."""
from __future__ import annotations


class HarvestError(RuntimeError):
    """Base error for workbook harvesting."""


class DocumentReadFailure(HarvestError):
    """Raised when a workbook or one of its sheets cannot be read."""
