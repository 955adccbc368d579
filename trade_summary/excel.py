from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import Dict, List, Sequence

import pandas as pd
from openpyxl import load_workbook
from xlsxwriter.exceptions import XlsxWriterException

from .exceptions import OutputDestinationError, OutputTableMissing, SummaryError
from .utils import pad_row, sheet_name_problem

Rows = List[List[object]]

DATE_FORMAT = "yyyy-mm-dd"


class Formula(str):
    """Cell text written back as a formula instead of a literal string."""


def _cell_value(cell) -> object:
    if cell.data_type != "f":
        return cell.value
    value = cell.value
    # Array formulas come back as objects carrying the formula text.
    return Formula(value if isinstance(value, str) else getattr(value, "text", None) or str(value))


class OutputWorkbook:
    """A set of named two-dimensional tables, persisted as one ``.xlsx`` file.

    Rows and columns are 1-indexed in every public method.
    """

    def __init__(self, tables: Dict[str, Rows] | None = None) -> None:
        self.tables: Dict[str, Rows] = dict(tables or {})

    @classmethod
    def open(cls, path: Path) -> "OutputWorkbook":
        if not path.exists():
            return cls()
        try:
            workbook = load_workbook(path)
        except Exception as exc:
            raise OutputDestinationError(f"Unable to open output workbook {path}: {exc}") from exc
        try:
            tables = {
                worksheet.title: [[_cell_value(cell) for cell in row] for row in worksheet.iter_rows()]
                for worksheet in workbook.worksheets
            }
        finally:
            workbook.close()
        return cls(tables)

    def table_names(self) -> List[str]:
        return list(self.tables)

    def has_table(self, name: str) -> bool:
        return self._stored_name(name) is not None

    def create_table(self, name: str) -> str:
        problem = sheet_name_problem(name)
        if problem:
            raise SummaryError(f"Cannot create table {name!r}: {problem}")
        existing = self._stored_name(name)
        if existing is not None:
            raise SummaryError(f"Table {name!r} already exists as {existing!r}")
        self.tables[name] = []
        return name

    def delete_table_if_exists(self, name: str) -> bool:
        existing = self._stored_name(name)
        if existing is None:
            return False
        del self.tables[existing]
        return True

    def write_rows(self, name: str, start_row: int, start_col: int, rows: Sequence[Sequence[object]]) -> None:
        if start_row < 1 or start_col < 1:
            raise SummaryError(f"Rows and columns are 1-indexed; got ({start_row}, {start_col})")
        grid = self._table(name)
        for offset, row in enumerate(rows):
            row_idx = start_row - 1 + offset
            while len(grid) <= row_idx:
                grid.append([])
            target = pad_row(grid[row_idx], start_col - 1 + len(row))
            target[start_col - 1 : start_col - 1 + len(row)] = list(row)
            grid[row_idx] = target

    def read_table(self, name: str) -> Rows:
        return [list(row) for row in self._table(name)]

    def _stored_name(self, name: str) -> str | None:
        # Sheet names in a workbook are unique regardless of case.
        if name in self.tables:
            return name
        folded = name.casefold()
        return next((stored for stored in self.tables if stored.casefold() == folded), None)

    def _table(self, name: str) -> Rows:
        existing = self._stored_name(name)
        if existing is None:
            raise OutputTableMissing(f"Table {name!r} does not exist in the output workbook")
        return self.tables[existing]

    def save(self, path: Path, created: datetime | None = None) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with pd.ExcelWriter(path, engine="xlsxwriter") as writer:
                if created is not None:
                    writer.book.set_properties({"created": created})
                date_format = writer.book.add_format({"num_format": DATE_FORMAT})
                for name, rows in self.tables.items():
                    worksheet = writer.book.add_worksheet(name)
                    for row_idx, row in enumerate(rows):
                        for col_idx, value in enumerate(row):
                            if value is None:
                                continue
                            if isinstance(value, (datetime, date)):
                                if not isinstance(value, datetime):
                                    value = datetime.combine(value, time.min)
                                worksheet.write_datetime(row_idx, col_idx, value, date_format)
                            elif isinstance(value, Formula):
                                worksheet.write_formula(row_idx, col_idx, value)
                            elif isinstance(value, str):
                                worksheet.write_string(row_idx, col_idx, value)
                            elif isinstance(value, bool):
                                worksheet.write_boolean(row_idx, col_idx, value)
                            elif isinstance(value, (int, float)):
                                worksheet.write_number(row_idx, col_idx, value)
                            else:
                                worksheet.write_string(row_idx, col_idx, str(value))
        except (OSError, XlsxWriterException) as exc:
            raise OutputDestinationError(f"Unable to write output workbook {path}: {exc}") from exc
        return path
