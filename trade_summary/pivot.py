"""Generic group-by/summarize views over a rendered table.

Each view is computed eagerly from the source table's data body and written
into its own output table; views never read from, or write to, one another.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

import pandas as pd

from .aggregates import UNDEFINED_WHEN_EMPTY, is_empty, summarize
from .config import PivotDefinition
from .constants import BLANK_KEY, GRAND_TOTAL_LABEL, TOTAL_LABEL
from .excel import OutputWorkbook, Rows
from .exceptions import InsufficientData, OutputTableMissing, SummaryError
from .utils import pad_row, trim_trailing_blank_rows

logger = logging.getLogger(__name__)

GroupKey = Tuple[Hashable, Optional[Hashable]]


def relation_from_table(rows: Sequence[Sequence[object]], data_start_row: int) -> pd.DataFrame:
    """Turn a rendered table into a frame of its data body.

    Row ``data_start_row - 1`` supplies the column names; everything above it
    is header material and is excluded.
    """
    caption_idx = data_start_row - 2
    captions = list(rows[caption_idx]) if 0 <= caption_idx < len(rows) else []
    body = trim_trailing_blank_rows(rows[data_start_row - 1 :])
    width = max([len(captions), *(len(row) for row in body)], default=0)
    columns = [
        str(caption) if not is_empty(caption) else f"Column {idx + 1}"
        for idx, caption in enumerate(pad_row(captions, width))
    ]
    return pd.DataFrame([pad_row(row, width) for row in body], columns=columns, dtype=object)


@dataclass
class PivotView:
    definition: PivotDefinition
    row_labels: List[Hashable] = field(default_factory=list)
    col_labels: List[Hashable] = field(default_factory=list)
    cells: Dict[GroupKey, Optional[float]] = field(default_factory=dict)
    row_totals: Dict[Hashable, Optional[float]] = field(default_factory=dict)
    col_totals: Dict[Hashable, Optional[float]] = field(default_factory=dict)
    grand_total: Optional[float] = None
    empty_groups: List[GroupKey] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def is_cross_tab(self) -> bool:
        return self.definition.col_key is not None

    def value(self, row: Hashable, col: Optional[Hashable] = None) -> Optional[float]:
        return self.cells.get((row, col))

    def header(self) -> List[object]:
        definition = self.definition
        if not self.is_cross_tab:
            return [definition.row_key, f"{definition.fn.value} of {definition.value_key}"]
        header: List[object] = [definition.row_key, *self.col_labels]
        if definition.show_totals:
            header.append(TOTAL_LABEL)
        return header

    def rows(self) -> Rows:
        rendered: Rows = [self.header()]
        show_totals = self.definition.show_totals
        for row in self.row_labels:
            if not self.is_cross_tab:
                rendered.append([row, self.value(row)])
                continue
            line: List[object] = [row, *(self.value(row, col) for col in self.col_labels)]
            if show_totals:
                line.append(self.row_totals.get(row))
            rendered.append(line)
        if show_totals:
            if self.is_cross_tab:
                rendered.append(
                    [GRAND_TOTAL_LABEL, *(self.col_totals.get(col) for col in self.col_labels), self.grand_total]
                )
            else:
                rendered.append([GRAND_TOTAL_LABEL, self.grand_total])
        return rendered

    def to_frame(self) -> pd.DataFrame:
        rendered = self.rows()
        return pd.DataFrame(rendered[1:], columns=rendered[0])


def _group_label(value: object) -> Hashable:
    return BLANK_KEY if is_empty(value) else value


def _ordered_unique(series: pd.Series) -> List[Hashable]:
    return list(pd.unique(series))


def aggregate(frame: pd.DataFrame, definition: PivotDefinition) -> PivotView:
    """Group ``frame`` per ``definition`` and summarize every group."""
    for key in (definition.row_key, definition.col_key, definition.value_key):
        if key is not None and key not in frame.columns:
            raise SummaryError(f"Column {key!r} not found; available: {', '.join(map(str, frame.columns))}")

    fn = definition.fn
    columns = {
        "row": frame[definition.row_key].map(_group_label),
        "value": frame[definition.value_key],
    }
    if definition.col_key:
        columns["col"] = frame[definition.col_key].map(_group_label)
    work = pd.DataFrame(columns, dtype=object)
    view = PivotView(definition)
    view.row_labels = _ordered_unique(work["row"])

    if definition.col_key:
        view.col_labels = _ordered_unique(work["col"])
        for (row, col), group in work.groupby(["row", "col"], sort=False, dropna=False):
            view.cells[(row, col)] = summarize(fn, group["value"].tolist())
        for col, group in work.groupby("col", sort=False, dropna=False):
            view.col_totals[col] = summarize(fn, group["value"].tolist())
    for row, group in work.groupby("row", sort=False, dropna=False):
        view.row_totals[row] = summarize(fn, group["value"].tolist())
        if not definition.col_key:
            view.cells[(row, None)] = view.row_totals[row]
    view.grand_total = summarize(fn, work["value"].tolist())

    if fn in UNDEFINED_WHEN_EMPTY:
        view.empty_groups = _empty_groups(view)

    if definition.sort_by_value_descending:
        view.row_labels = rank_rows(view.row_labels, view.row_totals)
    return view


def _empty_groups(view: PivotView) -> List[Tuple[Hashable, Optional[Hashable]]]:
    """Every rendered aggregate that came out empty, totals included."""
    empty = [key for key, result in view.cells.items() if result is None]
    if view.is_cross_tab:
        empty.extend((row, TOTAL_LABEL) for row in view.row_labels if view.row_totals.get(row) is None)
    if view.definition.show_totals:
        if view.is_cross_tab:
            empty.extend(
                (GRAND_TOTAL_LABEL, col) for col in view.col_labels if view.col_totals.get(col) is None
            )
        if view.grand_total is None:
            empty.append((GRAND_TOTAL_LABEL, None))
    return empty


def rank_rows(labels: Sequence[Hashable], totals: Dict[Hashable, Optional[float]]) -> List[Hashable]:
    """Order labels by total, largest first; empty totals last, ties by position."""
    positions = {label: idx for idx, label in enumerate(labels)}

    def sort_key(label: Hashable) -> Tuple[bool, float, int]:
        total = totals.get(label)
        return (total is None, -(total or 0.0), positions[label])

    return sorted(labels, key=sort_key)


def build_pivot(
    output: OutputWorkbook,
    source_table: str,
    data_start_row: int,
    definition: PivotDefinition,
) -> PivotView:
    """Compute one view from ``source_table`` and regenerate its output table."""
    if not output.has_table(source_table):
        raise OutputTableMissing(f"Source table {source_table!r} is missing; cannot build {definition.name!r}")
    frame = relation_from_table(output.read_table(source_table), data_start_row)
    if len(frame) < definition.min_rows:
        raise InsufficientData(
            f"{definition.name!r} needs at least {definition.min_rows} row(s); {source_table!r} has {len(frame)}"
        )
    view = aggregate(frame, definition)
    output.delete_table_if_exists(definition.name)
    output.create_table(definition.name)
    output.write_rows(definition.name, 1, 1, view.rows())
    logger.info("Built pivot %s with %d group(s)", definition.name, len(view.row_labels))
    return view
