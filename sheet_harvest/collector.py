"""Drive the extractor across every sheet of every input workbook."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from .constants import (
    DIAGNOSTIC_COLUMNS,
    DOCUMENT_READ_FAILURE,
    EXTRACTION_MISS,
    EXTRACTION_MISS_DETAIL,
    SHEET_READ_FAILURE,
    SOURCE_UNAVAILABLE,
)
from .exceptions import HarvestError
from .extractor import extract_first
from .gateway import WorkbookGateway
from .models import Document, DocumentHandle, Entry, SheetHandle

logger = logging.getLogger(__name__)


@dataclass
class RunDiagnostics:
    entries: List[Dict[str, str]] = field(default_factory=list)

    def add(self, document: str, sheet: str, issue: str, detail: str = "") -> None:
        self.entries.append(
            {
                "Document": document,
                "Sheet": sheet,
                "Issue": issue,
                "Detail": detail,
            }
        )

    def extend(self, records: Iterable[Dict[str, str]]) -> None:
        self.entries.extend(records)

    def counts(self) -> Dict[str, int]:
        return dict(Counter(entry["Issue"] for entry in self.entries))

    def to_frame(self) -> pd.DataFrame:
        if not self.entries:
            return pd.DataFrame(columns=DIAGNOSTIC_COLUMNS)
        return pd.DataFrame(self.entries, columns=DIAGNOSTIC_COLUMNS)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class CollectionResult:
    records: List[Entry] = field(default_factory=list)
    diagnostics: RunDiagnostics = field(default_factory=RunDiagnostics)
    documents_processed: int = 0
    documents_skipped: int = 0
    sheets_scanned: int = 0

    @property
    def entries_extracted(self) -> int:
        return len(self.records)


def describe_failure(exc: Exception) -> str:
    if isinstance(exc, HarvestError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


def ordered_sheets(document: Document, sort_sheets: bool) -> List[SheetHandle]:
    if sort_sheets:
        return sorted(document.sheets, key=lambda sheet: sheet.name)
    return list(document.sheets)


def collect(
    gateway: WorkbookGateway,
    source: object,
    labels: Sequence[str],
    *,
    sort_sheets: bool = False,
) -> CollectionResult:
    """Extract one figure per sheet, in document then sheet order.

    Failures never propagate: a missing label is recorded and the sheet skipped,
    an unreadable workbook or sheet is recorded and the rest of that workbook
    skipped. Whatever was accumulated is always returned.
    """
    result = CollectionResult()
    try:
        handles = gateway.list_input_documents(source)
    except Exception as exc:
        logger.warning("Input source unavailable: %s", exc)
        result.diagnostics.add(str(source), "", SOURCE_UNAVAILABLE, describe_failure(exc))
        return result

    for handle in handles:
        if _collect_document(gateway, handle, labels, sort_sheets, result):
            result.documents_processed += 1
        else:
            result.documents_skipped += 1

    logger.info(
        "Collected %d entries from %d document(s); %d skipped",
        result.entries_extracted,
        result.documents_processed,
        result.documents_skipped,
    )
    return result


def _collect_document(
    gateway: WorkbookGateway,
    handle: DocumentHandle,
    labels: Sequence[str],
    sort_sheets: bool,
    result: CollectionResult,
) -> bool:
    try:
        document = gateway.open_document(handle)
    except Exception as exc:
        logger.warning("Skipping document %s: %s", handle.name, exc)
        result.diagnostics.add(handle.name, "", DOCUMENT_READ_FAILURE, describe_failure(exc))
        return False

    try:
        return _scan_sheets(gateway, document, labels, sort_sheets, result)
    finally:
        _close_document(document)


def _scan_sheets(
    gateway: WorkbookGateway,
    document: Document,
    labels: Sequence[str],
    sort_sheets: bool,
    result: CollectionResult,
) -> bool:
    for sheet in ordered_sheets(document, sort_sheets):
        try:
            grid = gateway.read_grid(sheet)
        except Exception as exc:
            logger.warning("Skipping rest of %s at sheet %s: %s", document.name, sheet.name, exc)
            result.diagnostics.add(document.name, sheet.name, SHEET_READ_FAILURE, describe_failure(exc))
            return False
        result.sheets_scanned += 1
        value, _matched = extract_first(grid, labels)
        if value is None:
            result.diagnostics.add(document.name, sheet.name, EXTRACTION_MISS, EXTRACTION_MISS_DETAIL)
            continue
        result.records.append(Entry(document.name, sheet.name, value))
    return True


def _close_document(document: Document) -> None:
    try:
        document.close()
    except Exception as exc:
        logger.warning("Failed to close %s: %s", document.name, exc)
