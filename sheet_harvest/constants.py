from __future__ import annotations

DEFAULT_SEARCH_LABEL = "Total"

WORKBOOK_SUFFIXES = (".xlsx", ".xlsm")

LOCK_FILE_PREFIX = "~$"

SUMMARY_FILE_PREFIX = "summary-of-"

EXTRACTION_MISS = "extraction-miss"
DOCUMENT_READ_FAILURE = "document-read-failure"
SHEET_READ_FAILURE = "sheet-read-failure"
SOURCE_UNAVAILABLE = "source-unavailable"

EXTRACTION_MISS_DETAIL = "label not found or non-numeric"

DIAGNOSTIC_COLUMNS = ["Document", "Sheet", "Issue", "Detail"]
