"""End-to-end tests for the summary pipeline."""

from __future__ import annotations

import hashlib
from datetime import date
from pathlib import Path

import pytest
from openpyxl import load_workbook

from sheet_harvest.collector import RunDiagnostics
from sheet_harvest.gateway import InMemoryWorkbookGateway
from tests.fixtures import total_tab
from trade_summary.aggregates import SummarizeFunction
from trade_summary.config import PipelineConfig, PivotDefinition
from trade_summary.demo import build_demo_config, build_demo_gateway
from trade_summary.excel import OutputWorkbook
from trade_summary.exceptions import OutputDestinationError
from trade_summary.pipeline import build_pivots, run_pipeline

RUN_DATE = date(2024, 5, 1)


def _demo_report(tmp_path: Path):
    return run_pipeline(build_demo_config(tmp_path), build_demo_gateway(), run_date=RUN_DATE, save=False)


def test_demo_run_tolerates_partial_failures(tmp_path: Path) -> None:
    report = _demo_report(tmp_path)

    assert report.collection.documents_processed == 4
    assert report.collection.documents_skipped == 1
    assert report.collection.entries_extracted == 9
    assert report.diagnostics.counts() == {"extraction-miss": 2, "document-read-failure": 1}
    assert len(report.built_pivots) == 8
    assert report.skipped_pivots == []
    assert "Documents processed: 4" in report.summary_lines()


def test_demo_ranked_view_orders_sources_by_total(tmp_path: Path) -> None:
    report = _demo_report(tmp_path)

    ranked = report.output.read_table("RANKED BY TOTAL")

    assert ranked[0] == ["Source", "January", "February", "March", "Total"]
    assert [row[0] for row in ranked[1:]] == [
        "Broker North",
        "Broker East",
        "Broker South",
        "Broker West",
        "Grand Total",
    ]
    assert ranked[1][-1] == pytest.approx(3660.25)
    assert ranked[-1][-1] == pytest.approx(8140.75)


def test_summary_statistics_match_entries(tmp_path: Path) -> None:
    report = _demo_report(tmp_path)

    stats = report.summary.statistics
    assert stats["NUM"] == 9
    assert stats["SUM"] == pytest.approx(8140.75)
    assert stats["AVG"] == 904.53
    assert stats["MIN"] == 275.0
    assert stats["MAX"] == 2100.0


def test_diagnostics_table_is_written(tmp_path: Path) -> None:
    report = _demo_report(tmp_path)

    rows = report.output.read_table("DIAGNOSTICS")

    assert rows[0] == ["Document", "Sheet", "Issue", "Detail"]
    assert [row[:3] for row in rows[1:]] == [
        ["Broker South", "February", "extraction-miss"],
        ["Broker East", "February", "extraction-miss"],
        ["Broker Archive", "", "document-read-failure"],
    ]


def test_rerun_regenerates_identical_workbook(tmp_path: Path) -> None:
    config = build_demo_config(tmp_path)

    first = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)
    first_tables = OutputWorkbook.open(first.output_path).tables
    notes = OutputWorkbook.open(first.output_path)
    notes.create_table("NOTES")
    notes.write_rows("NOTES", 1, 1, [["keep me"]])
    notes.save(first.output_path)

    second = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)
    second_tables = OutputWorkbook.open(second.output_path).tables

    assert second.output_path == first.output_path == tmp_path / "summary-of-Demo-Trades-20240501.xlsx"
    assert second_tables.pop("NOTES") == [["keep me"]]
    assert second_tables == first_tables
    assert len(second_tables["TRADE SUMMARY"]) == config.data_start_row - 1 + 9


def test_rerun_is_byte_identical(tmp_path: Path) -> None:
    config = build_demo_config(tmp_path)

    first = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)
    first_digest = hashlib.sha256(first.output_path.read_bytes()).hexdigest()
    second = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)

    assert hashlib.sha256(second.output_path.read_bytes()).hexdigest() == first_digest


def test_rerun_keeps_formulas_in_other_sheets(tmp_path: Path) -> None:
    config = build_demo_config(tmp_path)
    first = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)
    workbook = load_workbook(first.output_path)
    notes = workbook.create_sheet("NOTES")
    notes["A1"] = 2
    notes["A2"] = "=A1*3"
    workbook.save(first.output_path)

    second = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)

    reloaded = load_workbook(second.output_path)
    assert reloaded["NOTES"]["A1"].value == 2
    assert reloaded["NOTES"]["A2"].value == "=A1*3"
    assert reloaded.sheetnames[-1] == "DIAGNOSTICS"


def test_table_name_clash_with_existing_sheet_is_regenerated(tmp_path: Path) -> None:
    config = build_demo_config(tmp_path)
    first = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)
    stale = OutputWorkbook.open(first.output_path)
    stale.tables = {name.lower() if name == "TRADE SUMMARY" else name: rows for name, rows in stale.tables.items()}
    stale.save(first.output_path)

    second = run_pipeline(config, build_demo_gateway(), run_date=RUN_DATE)

    names = OutputWorkbook.open(second.output_path).table_names()
    assert "TRADE SUMMARY" in names
    assert "trade summary" not in names


def test_no_inputs_skips_pivots_but_completes(tmp_path: Path) -> None:
    config = PipelineConfig(input_source=Path("empty"), output_destination=tmp_path)

    report = run_pipeline(config, InMemoryWorkbookGateway({}), run_date=RUN_DATE, save=False)

    assert report.collection.records == []
    assert report.built_pivots == []
    assert len(report.skipped_pivots) == len(config.pivot_definitions)
    assert report.diagnostics.counts() == {"insufficient-data": len(config.pivot_definitions)}
    assert report.output.has_table("TRADE SUMMARY")


def test_failing_pivot_does_not_block_others(tmp_path: Path) -> None:
    definitions = (
        PivotDefinition(name="BY REGION", row_key="Region", value_key="Value", fn=SummarizeFunction.SUM),
        PivotDefinition(name="BY TAB", row_key="Tab", value_key="Value", fn=SummarizeFunction.COUNT),
    )
    config = PipelineConfig(input_source=Path("in"), output_destination=tmp_path, pivot_definitions=definitions)
    gateway = InMemoryWorkbookGateway({"doc": {"Jan": total_tab(1.0), "Feb": total_tab(2.0)}})

    report = run_pipeline(config, gateway, run_date=RUN_DATE, save=False)

    assert report.built_pivots == ["BY TAB"]
    assert report.skipped_pivots == ["BY REGION"]
    assert report.diagnostics.counts() == {"pivot-failure": 1}
    assert report.output.read_table("BY TAB") == [["Tab", "count of Value"], ["Jan", 1], ["Feb", 1]]


def test_missing_summary_table_aborts_each_pivot(tmp_path: Path) -> None:
    config = PipelineConfig(input_source=Path("in"), output_destination=tmp_path)
    diagnostics = RunDiagnostics()

    built, skipped = build_pivots(OutputWorkbook(), config, diagnostics)

    assert built == []
    assert len(skipped) == len(config.pivot_definitions)
    assert diagnostics.counts() == {"output-table-missing": len(config.pivot_definitions)}


def test_unusable_output_destination_aborts_run(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")

    with pytest.raises(OutputDestinationError):
        run_pipeline(build_demo_config(blocker), build_demo_gateway(), run_date=RUN_DATE)
