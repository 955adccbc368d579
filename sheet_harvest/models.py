"""Data models for harvested workbook values."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence


class CellKind(str, Enum):
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class Cell:
    kind: CellKind
    value: Any = None

    @classmethod
    def from_raw(cls, raw: object) -> "Cell":
        """Tag a raw spreadsheet value with its kind.

        Booleans are text rather than numbers, NaN and blank strings are empty.
        """
        if raw is None:
            return EMPTY_CELL
        if isinstance(raw, bool):
            return cls(CellKind.TEXT, str(raw).upper())
        if isinstance(raw, (int, float)):
            if isinstance(raw, float) and math.isnan(raw):
                return EMPTY_CELL
            return cls(CellKind.NUMBER, raw)
        if isinstance(raw, (datetime, date, time)):
            return cls(CellKind.DATE, raw)
        text = str(raw)
        if not text.strip():
            return EMPTY_CELL
        return cls(CellKind.TEXT, text)

    @property
    def is_number(self) -> bool:
        return self.kind is CellKind.NUMBER

    def matches(self, label: str) -> bool:
        return self.kind is CellKind.TEXT and self.value == label


EMPTY_CELL = Cell(CellKind.EMPTY)

Grid = List[List[Cell]]


def to_grid(rows: Sequence[Sequence[object]]) -> Grid:
    return [[Cell.from_raw(value) for value in row] for row in rows]


@dataclass(frozen=True, slots=True)
class Entry:
    source_name: str
    tab_name: str
    value: float

    def as_row(self) -> List[object]:
        return [self.source_name, self.tab_name, self.value]


@dataclass(frozen=True, slots=True)
class DocumentHandle:
    name: str
    location: str


@dataclass(frozen=True, slots=True)
class SheetHandle:
    document: str
    name: str
    ref: Any = field(default=None, compare=False, repr=False)


@dataclass(slots=True)
class Document:
    name: str
    sheets: List[SheetHandle]
    closer: Optional[Callable[[], None]] = field(default=None, repr=False)

    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]

    def close(self) -> None:
        if self.closer is not None:
            self.closer()
            self.closer = None
