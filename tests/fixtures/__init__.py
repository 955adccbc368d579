"""Shared sheet builders for tests."""

from __future__ import annotations


def total_tab(value: object, label: str = "Total") -> list[list[object]]:
    return [
        ["Trades", None, None],
        ["Ticker", "Qty", "Amount"],
        ["ACME", 3, 150.0],
        [None, label, value],
    ]
