"""Label-anchored value harvesting across spreadsheet workbooks."""

from .collector import CollectionResult, RunDiagnostics, collect
from .extractor import extract, extract_first
from .gateway import InMemoryWorkbookGateway, WorkbookGateway, XlsxWorkbookGateway
from .models import Cell, CellKind, Document, DocumentHandle, Entry, SheetHandle

__all__ = [
    "Cell",
    "CellKind",
    "CollectionResult",
    "Document",
    "DocumentHandle",
    "Entry",
    "InMemoryWorkbookGateway",
    "RunDiagnostics",
    "SheetHandle",
    "WorkbookGateway",
    "XlsxWorkbookGateway",
    "collect",
    "extract",
    "extract_first",
]
