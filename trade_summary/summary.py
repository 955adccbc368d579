"""Render the statistics header and the extracted entries into one table."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from sheet_harvest.models import Entry

from .aggregates import compute_statistic
from .config import PipelineConfig
from .constants import SUMMARY_COLUMNS
from .excel import OutputWorkbook, Rows

logger = logging.getLogger(__name__)


@dataclass
class SummaryTable:
    name: str
    data_start_row: int
    statistics: Dict[str, Optional[float]]
    records: List[Entry] = field(default_factory=list)

    @property
    def caption_row(self) -> int:
        return self.data_start_row - 1

    def header_rows(self) -> Rows:
        rows: Rows = [[label, value] for label, value in self.statistics.items()]
        while len(rows) < self.caption_row - 1:
            rows.append([])
        rows.append(list(SUMMARY_COLUMNS))
        return rows

    def body_rows(self) -> Rows:
        return [entry.as_row() for entry in self.records]

    def rows(self) -> Rows:
        return self.header_rows() + self.body_rows()

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.body_rows(), columns=SUMMARY_COLUMNS)


def compute_statistics(records: Sequence[Entry], statistics: Sequence[str]) -> Dict[str, Optional[float]]:
    values = [entry.value for entry in records]
    return {label: compute_statistic(label, values) for label in statistics}


def build_summary(records: Sequence[Entry], config: PipelineConfig, output: OutputWorkbook) -> SummaryTable:
    """Regenerate the summary table from scratch.

    Any existing table with the configured name is deleted first, so repeated
    runs over the same records always produce the same rows.
    """
    table = SummaryTable(
        name=config.summary_table_name,
        data_start_row=config.data_start_row,
        statistics=compute_statistics(records, config.statistics),
        records=list(records),
    )
    if output.delete_table_if_exists(table.name):
        logger.info("Deleted previous %s table", table.name)
    output.create_table(table.name)
    output.write_rows(table.name, 1, 1, table.header_rows())
    output.write_rows(table.name, table.data_start_row, 1, table.body_rows())
    logger.info(
        "Built %s with %d entries starting at row %d",
        table.name,
        len(table.records),
        table.data_start_row,
    )
    return table
