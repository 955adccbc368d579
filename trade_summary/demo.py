from __future__ import annotations

from pathlib import Path

from sheet_harvest.gateway import InMemoryWorkbookGateway

from .config import PipelineConfig

DEMO_SOURCE = "Demo Trades"


def _trade_tab(total: float | str | None, *, label: str = "Total") -> list[list[object]]:
    return [
        ["Trade log", None, None],
        ["Date", "Ticker", "Amount"],
        ["2024-01-02", "ACME", 120.0],
        ["2024-01-03", "GLOBX", 80.5],
        [None, label, total],
    ]


def build_demo_gateway() -> InMemoryWorkbookGateway:
    """Five trade workbooks: one unreadable, one tab without a total, one with a text total."""
    documents = {
        "Broker North": {
            "January": _trade_tab(1250.0),
            "February": _trade_tab(980.25),
            "March": _trade_tab(1430.0),
        },
        "Broker South": {
            "January": _trade_tab(640.0),
            "February": _trade_tab(None, label="Subtotal"),
            "March": _trade_tab(715.5),
        },
        "Broker East": {
            "January": _trade_tab(2100.0),
            "February": _trade_tab("pending"),
        },
        "Broker West": {
            "January": _trade_tab(300.0),
            "February": _trade_tab(450.0),
            "March": _trade_tab(275.0),
        },
        "Broker Archive": {
            "January": _trade_tab(99.0),
        },
    }
    return InMemoryWorkbookGateway(documents, unreadable={"Broker Archive"})


def build_demo_config(output_destination: Path) -> PipelineConfig:
    return PipelineConfig(input_source=Path(DEMO_SOURCE), output_destination=output_destination)
