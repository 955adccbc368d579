"""Tests for collecting entries across workbooks."""

from __future__ import annotations

from pathlib import Path
from typing import List

from sheet_harvest.collector import collect
from sheet_harvest.gateway import InMemoryWorkbookGateway, XlsxWorkbookGateway
from sheet_harvest.models import Document, DocumentHandle, Entry
from tests.fixtures import total_tab


def test_entries_follow_document_then_declared_sheet_order(gateway) -> None:
    result = collect(gateway, None, ["Total"])

    assert result.records == [
        Entry("alpha", "Mar", 30.0),
        Entry("alpha", "Jan", 10.0),
        Entry("beta", "Feb", 20.0),
    ]
    assert result.documents_processed == 3
    assert result.documents_skipped == 0
    assert result.sheets_scanned == 5


def test_sort_sheets_orders_tabs_alphabetically(gateway) -> None:
    result = collect(gateway, None, ["Total"], sort_sheets=True)

    assert [(entry.source_name, entry.tab_name) for entry in result.records[:2]] == [
        ("alpha", "Jan"),
        ("alpha", "Mar"),
    ]


def test_misses_are_recorded_without_entries(gateway) -> None:
    result = collect(gateway, None, ["Total"])

    misses = [
        (entry["Document"], entry["Sheet"])
        for entry in result.diagnostics.entries
        if entry["Issue"] == "extraction-miss"
    ]
    assert misses == [("beta", "Summary"), ("gamma", "Jan")]
    assert result.diagnostics.entries[0]["Detail"] == "label not found or non-numeric"
    assert all(entry.tab_name != "Summary" for entry in result.records)


def test_fallback_label_recovers_missing_total(gateway) -> None:
    result = collect(gateway, None, ["Total", "Grand Total"])

    assert result.records[-1] == Entry("gamma", "Jan", 5.0)
    assert result.diagnostics.counts() == {"extraction-miss": 1}


def test_unreadable_document_is_skipped_and_others_processed() -> None:
    documents = {f"doc{idx}": {"Sheet1": total_tab(float(idx))} for idx in range(5)}
    gateway = InMemoryWorkbookGateway(documents, unreadable={"doc2"})

    result = collect(gateway, None, ["Total"])

    assert result.documents_processed == 4
    assert result.documents_skipped == 1
    assert len(result.diagnostics) == 1
    assert result.diagnostics.entries[0]["Issue"] == "document-read-failure"
    assert [entry.source_name for entry in result.records] == ["doc0", "doc1", "doc3", "doc4"]


def test_sheet_read_failure_skips_rest_of_document_only() -> None:
    documents = {
        "broken": {"A": total_tab(1.0), "B": None, "C": total_tab(3.0)},
        "fine": {"A": total_tab(4.0)},
    }
    gateway = InMemoryWorkbookGateway(documents)

    result = collect(gateway, None, ["Total"])

    assert result.records == [Entry("broken", "A", 1.0), Entry("fine", "A", 4.0)]
    assert result.diagnostics.counts() == {"sheet-read-failure": 1}
    assert result.documents_skipped == 1
    assert result.documents_processed == 1


def test_missing_input_folder_is_a_diagnostic(tmp_path: Path) -> None:
    result = collect(XlsxWorkbookGateway(), tmp_path / "nope", ["Total"])

    assert result.records == []
    assert result.diagnostics.counts() == {"source-unavailable": 1}


class FlakyOpenGateway(InMemoryWorkbookGateway):
    def open_document(self, handle: DocumentHandle) -> Document:
        if handle.name == "b":
            raise OSError("disk went away")
        return super().open_document(handle)


class FailingListGateway(InMemoryWorkbookGateway):
    def list_input_documents(self, source: object = None) -> List[DocumentHandle]:
        raise PermissionError("permission denied")


def test_unexpected_open_error_skips_only_that_document() -> None:
    documents = {name: {"Sheet1": total_tab(float(idx))} for idx, name in enumerate("abc")}

    result = collect(FlakyOpenGateway(documents), None, ["Total"])

    assert result.records == [Entry("a", "Sheet1", 0.0), Entry("c", "Sheet1", 2.0)]
    assert result.documents_skipped == 1
    assert result.diagnostics.entries == [
        {
            "Document": "b",
            "Sheet": "",
            "Issue": "document-read-failure",
            "Detail": "OSError: disk went away",
        }
    ]


def test_malformed_grid_row_is_a_sheet_read_failure() -> None:
    documents = {
        "ragged": {"A": [None, ["Total", 1]], "B": total_tab(2.0)},
        "fine": {"A": total_tab(4.0)},
    }

    result = collect(InMemoryWorkbookGateway(documents), None, ["Total"])

    assert result.records == [Entry("fine", "A", 4.0)]
    assert result.diagnostics.counts() == {"sheet-read-failure": 1}
    entry = result.diagnostics.entries[0]
    assert (entry["Document"], entry["Sheet"]) == ("ragged", "A")
    assert entry["Detail"].startswith("TypeError: ")


def test_listing_error_becomes_source_unavailable() -> None:
    result = collect(FailingListGateway({}), "inbox", ["Total"])

    assert result.records == []
    assert result.diagnostics.entries[0]["Document"] == "inbox"
    assert result.diagnostics.entries[0]["Issue"] == "source-unavailable"
    assert result.diagnostics.entries[0]["Detail"] == "PermissionError: permission denied"


def test_unlistable_input_folder_is_a_diagnostic(tmp_path: Path, monkeypatch) -> None:
    def refuse(self):
        raise PermissionError("permission denied")

    monkeypatch.setattr(type(tmp_path), "iterdir", refuse)

    result = collect(XlsxWorkbookGateway(), tmp_path, ["Total"])

    assert result.diagnostics.counts() == {"source-unavailable": 1}
    assert "Unable to list input directory" in result.diagnostics.entries[0]["Detail"]


def test_diagnostics_frame_has_fixed_columns(gateway) -> None:
    frame = collect(gateway, None, ["Total"]).diagnostics.to_frame()
    empty = collect(InMemoryWorkbookGateway({}), None, ["Total"]).diagnostics.to_frame()

    assert list(frame.columns) == ["Document", "Sheet", "Issue", "Detail"]
    assert len(frame) == 2
    assert list(empty.columns) == ["Document", "Sheet", "Issue", "Detail"]
    assert empty.empty
