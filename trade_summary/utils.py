from __future__ import annotations

import re
from datetime import date
from typing import List, Sequence

from .constants import OUTPUT_PREFIX, OUTPUT_SUFFIX

INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
MAX_SHEET_NAME = 31


def output_filename(source_name: str, run_date: date) -> str:
    slug = re.sub(r"\s+", "-", source_name.strip())
    return f"{OUTPUT_PREFIX}-{slug}-{run_date.strftime('%Y%m%d')}{OUTPUT_SUFFIX}"


def is_blank_row(row: Sequence[object]) -> bool:
    return all(value is None or (isinstance(value, str) and not value.strip()) for value in row)


def trim_trailing_blank_rows(rows: Sequence[Sequence[object]]) -> List[List[object]]:
    trimmed = [list(row) for row in rows]
    while trimmed and is_blank_row(trimmed[-1]):
        trimmed.pop()
    return trimmed


def pad_row(row: Sequence[object], width: int) -> List[object]:
    padded = list(row)
    if len(padded) < width:
        padded.extend([None] * (width - len(padded)))
    return padded


def sheet_name_problem(name: str) -> str | None:
    if not name or not name.strip():
        return "table name is empty"
    if len(name) > MAX_SHEET_NAME:
        return f"table name exceeds {MAX_SHEET_NAME} characters"
    if INVALID_SHEET_CHARS.search(name):
        return "table name contains one of []:*?/\\"
    return None
