"""Workbook access used by the collector.

The collector only depends on :class:`WorkbookGateway`. Two implementations are
provided: one over a directory of ``.xlsx`` files read with openpyxl and one over
in-memory sheet data.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Protocol, Sequence

from openpyxl import load_workbook

from .constants import LOCK_FILE_PREFIX, SUMMARY_FILE_PREFIX, WORKBOOK_SUFFIXES
from .exceptions import DocumentReadFailure
from .models import Document, DocumentHandle, Grid, SheetHandle, to_grid


class WorkbookGateway(Protocol):
    def list_input_documents(self, source: object) -> List[DocumentHandle]:
        ...

    def open_document(self, handle: DocumentHandle) -> Document:
        ...

    def read_grid(self, sheet: SheetHandle) -> Grid:
        ...


def is_input_workbook(path: Path) -> bool:
    if path.suffix.lower() not in WORKBOOK_SUFFIXES:
        return False
    if path.name.startswith(LOCK_FILE_PREFIX):
        return False
    return not path.name.startswith(SUMMARY_FILE_PREFIX)


class XlsxWorkbookGateway:
    """Reads every workbook in a directory, sorted by file name."""

    def list_input_documents(self, source: object) -> List[DocumentHandle]:
        directory = Path(str(source))
        if not directory.exists() or not directory.is_dir():
            raise DocumentReadFailure(f"Input directory not found: {directory}")
        try:
            paths = sorted(
                (path for path in directory.iterdir() if path.is_file() and is_input_workbook(path)),
                key=lambda path: path.name,
            )
        except OSError as exc:
            raise DocumentReadFailure(f"Unable to list input directory {directory}: {exc}") from exc
        return [DocumentHandle(name=path.stem, location=str(path)) for path in paths]

    def open_document(self, handle: DocumentHandle) -> Document:
        try:
            workbook = load_workbook(handle.location, read_only=True, data_only=True)
        except Exception as exc:
            raise DocumentReadFailure(f"Unable to open workbook {handle.location}: {exc}") from exc
        sheets = [
            SheetHandle(document=handle.name, name=worksheet.title, ref=worksheet)
            for worksheet in workbook.worksheets
        ]
        return Document(name=handle.name, sheets=sheets, closer=workbook.close)

    def read_grid(self, sheet: SheetHandle) -> Grid:
        try:
            rows = list(sheet.ref.iter_rows(values_only=True))
        except Exception as exc:
            raise DocumentReadFailure(
                f"Unable to read sheet {sheet.name!r} of {sheet.document}: {exc}"
            ) from exc
        return to_grid(rows)


class InMemoryWorkbookGateway:
    """Serves documents held as ``{document: {sheet: rows}}`` mappings."""

    def __init__(
        self,
        documents: Mapping[str, Mapping[str, Sequence[Sequence[object]]]],
        unreadable: Iterable[str] = (),
    ) -> None:
        self.documents: Dict[str, Mapping[str, Sequence[Sequence[object]]]] = dict(documents)
        self.unreadable = set(unreadable)

    def list_input_documents(self, source: object = None) -> List[DocumentHandle]:
        return [DocumentHandle(name=name, location=name) for name in self.documents]

    def open_document(self, handle: DocumentHandle) -> Document:
        if handle.name in self.unreadable or handle.name not in self.documents:
            raise DocumentReadFailure(f"Unable to open workbook {handle.name}")
        sheets = [
            SheetHandle(document=handle.name, name=sheet_name, ref=rows)
            for sheet_name, rows in self.documents[handle.name].items()
        ]
        return Document(name=handle.name, sheets=sheets)

    def read_grid(self, sheet: SheetHandle) -> Grid:
        if sheet.ref is None:
            raise DocumentReadFailure(f"Sheet {sheet.name!r} of {sheet.document} has no data")
        return to_grid(sheet.ref)
