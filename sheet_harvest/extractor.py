"""Label-anchored lookup of a single numeric figure inside one sheet."""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .models import Grid


def extract(grid: Grid, label: str) -> Optional[float]:
    """Return the number immediately right of the first cell equal to ``label``.

    Rows are scanned top to bottom and each row left to right. Only the first
    exact match is considered: if it sits in the last column of its row, or its
    neighbour is not a number, the result is ``None`` even when a later match
    would have produced a value.
    """
    for row in grid:
        for col_idx, cell in enumerate(row):
            if not cell.matches(label):
                continue
            if col_idx + 1 >= len(row):
                return None
            neighbour = row[col_idx + 1]
            return neighbour.value if neighbour.is_number else None
    return None


def extract_first(grid: Grid, labels: Iterable[str]) -> Tuple[Optional[float], Optional[str]]:
    """Try each label in order and return the first hit with the label that matched."""
    for label in labels:
        value = extract(grid, label)
        if value is not None:
            return value, label
    return None, None
