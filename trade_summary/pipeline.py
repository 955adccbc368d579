"""End-to-end run: collect, summarize, pivot, save."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import List, Optional, Tuple

from sheet_harvest.collector import CollectionResult, RunDiagnostics, collect
from sheet_harvest.gateway import WorkbookGateway

from .config import PipelineConfig
from .constants import EMPTY_GROUP, INSUFFICIENT_DATA, OUTPUT_TABLE_MISSING, PIVOT_FAILURE
from .excel import OutputWorkbook
from .exceptions import InsufficientData, OutputDestinationError, OutputTableMissing, SummaryError
from .pivot import PivotView, build_pivot
from .summary import SummaryTable, build_summary
from .utils import output_filename

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    collection: CollectionResult
    summary: SummaryTable
    output: OutputWorkbook
    output_path: Optional[Path] = None
    pivots: List[PivotView] = field(default_factory=list)
    skipped_pivots: List[str] = field(default_factory=list)
    diagnostics: RunDiagnostics = field(default_factory=RunDiagnostics)

    @property
    def built_pivots(self) -> List[str]:
        return [view.name for view in self.pivots]

    def summary_lines(self) -> List[str]:
        collection = self.collection
        lines = [
            f"Documents processed: {collection.documents_processed}",
            f"Documents skipped: {collection.documents_skipped}",
            f"Sheets scanned: {collection.sheets_scanned}",
            f"Entries extracted: {collection.entries_extracted}",
            f"Pivot views built: {len(self.pivots)}",
            f"Pivot views skipped: {len(self.skipped_pivots)}",
        ]
        for issue, count in sorted(self.diagnostics.counts().items()):
            lines.append(f"Diagnostics [{issue}]: {count}")
        if self.output_path is not None:
            lines.append(f"Output: {self.output_path}")
        return lines


def build_pivots(output: OutputWorkbook, config: PipelineConfig, diagnostics: RunDiagnostics) -> Tuple[List[PivotView], List[str]]:
    """Build every configured view independently; a failing view is skipped and recorded."""
    built: List[PivotView] = []
    skipped: List[str] = []
    source = config.summary_table_name
    for definition in config.pivot_definitions:
        try:
            view = build_pivot(output, source, config.data_start_row, definition)
        except OutputTableMissing as exc:
            logger.warning("Pivot %s aborted: %s", definition.name, exc)
            diagnostics.add(source, definition.name, OUTPUT_TABLE_MISSING, str(exc))
        except InsufficientData as exc:
            logger.info("Pivot %s skipped: %s", definition.name, exc)
            diagnostics.add(source, definition.name, INSUFFICIENT_DATA, str(exc))
        except SummaryError as exc:
            logger.warning("Pivot %s failed: %s", definition.name, exc)
            diagnostics.add(source, definition.name, PIVOT_FAILURE, str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure building pivot %s", definition.name)
            diagnostics.add(source, definition.name, PIVOT_FAILURE, f"{type(exc).__name__}: {exc}")
        else:
            built.append(view)
            for row, col in view.empty_groups:
                group = str(row) if col is None else f"{row} / {col}"
                diagnostics.add(
                    source,
                    definition.name,
                    EMPTY_GROUP,
                    f"No numeric values for {definition.fn.value} in group {group}",
                )
            continue
        skipped.append(definition.name)
    return built, skipped


def write_diagnostics(output: OutputWorkbook, config: PipelineConfig, diagnostics: RunDiagnostics) -> None:
    frame = diagnostics.to_frame()
    name = config.diagnostics_table_name
    output.delete_table_if_exists(name)
    output.create_table(name)
    output.write_rows(name, 1, 1, [list(frame.columns), *frame.astype(object).values.tolist()])


def run_pipeline(
    config: PipelineConfig,
    gateway: WorkbookGateway,
    *,
    run_date: date | None = None,
    output: OutputWorkbook | None = None,
    save: bool = True,
) -> RunReport:
    """Run the whole batch once.

    Only a failure to open or write the output workbook raises
    (:class:`OutputDestinationError`); everything else degrades to a recorded
    diagnostic.
    """
    run_date = run_date or date.today()
    output_path = config.output_destination / output_filename(config.source_name, run_date)
    if output is None:
        if save:
            _ensure_destination(config.output_destination)
        output = OutputWorkbook.open(output_path) if save else OutputWorkbook()

    collection = collect(gateway, config.input_source, config.labels, sort_sheets=config.sort_sheets)
    diagnostics = RunDiagnostics()
    diagnostics.extend(collection.diagnostics.entries)

    summary = build_summary(collection.records, config, output)
    pivots, skipped = build_pivots(output, config, diagnostics)
    write_diagnostics(output, config, diagnostics)

    report = RunReport(
        collection=collection,
        summary=summary,
        output=output,
        pivots=pivots,
        skipped_pivots=skipped,
        diagnostics=diagnostics,
    )
    if save:
        report.output_path = output.save(output_path, created=datetime.combine(run_date, time.min))
        logger.info("Wrote %s", report.output_path)
    return report


def _ensure_destination(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputDestinationError(f"Unable to create output directory {directory}: {exc}") from exc
    if not directory.is_dir():
        raise OutputDestinationError(f"Output destination is not a directory: {directory}")
