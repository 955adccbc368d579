from __future__ import annotations

from pathlib import Path

import pytest

from sheet_harvest.gateway import InMemoryWorkbookGateway
from tests.fixtures import total_tab
from trade_summary.config import PipelineConfig


@pytest.fixture
def trade_documents() -> dict[str, dict[str, list[list[object]]]]:
    """Three workbooks with tabs declared out of alphabetical order."""
    return {
        "alpha": {"Mar": total_tab(30.0), "Jan": total_tab(10.0)},
        "beta": {"Feb": total_tab(20.0), "Summary": total_tab("n/a")},
        "gamma": {"Jan": total_tab(5.0, label="Grand Total")},
    }


@pytest.fixture
def gateway(trade_documents) -> InMemoryWorkbookGateway:
    return InMemoryWorkbookGateway(trade_documents)


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(input_source=Path("Trades In"), output_destination=tmp_path / "out")
