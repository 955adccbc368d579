"""Summarize functions shared by the summary header and the pivot engine."""
from __future__ import annotations

import math
import numbers
from enum import Enum
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .exceptions import ConfigError


class SummarizeFunction(str, Enum):
    SUM = "sum"
    COUNT = "count"
    COUNT_ANY = "countAny"
    MIN = "min"
    MAX = "max"
    AVERAGE = "average"
    STDEV = "stdev"

    @classmethod
    def parse(cls, name: str) -> "SummarizeFunction":
        try:
            return cls(name)
        except ValueError:
            raise ConfigError(
                f"Unknown summarize function {name!r}; expected one of "
                + ", ".join(member.value for member in cls)
            ) from None


# Functions with no meaningful result over an empty numeric group.
UNDEFINED_WHEN_EMPTY = {SummarizeFunction.MIN, SummarizeFunction.MAX, SummarizeFunction.AVERAGE}


def is_numeric(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(float(value))


def is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def numeric_values(values: Iterable[object]) -> List[float]:
    return [float(value) for value in values if is_numeric(value)]


def summarize(fn: SummarizeFunction, values: Iterable[object]) -> Optional[float]:
    """Apply ``fn`` to a multiset of cell values.

    Non-numeric values are ignored by everything except ``countAny``. Returns
    ``None`` for min/max/average over a group with no numeric values.
    """
    values = list(values)
    if fn is SummarizeFunction.COUNT_ANY:
        return sum(1 for value in values if not is_empty(value))
    numbers_only = numeric_values(values)
    if fn is SummarizeFunction.COUNT:
        return len(numbers_only)
    if fn is SummarizeFunction.SUM:
        return float(sum(numbers_only)) if numbers_only else 0
    if fn is SummarizeFunction.STDEV:
        if len(numbers_only) < 2:
            return 0.0
        return float(pd.Series(numbers_only, dtype=float).std(ddof=1))
    if not numbers_only:
        return None
    series = pd.Series(numbers_only, dtype=float)
    if fn is SummarizeFunction.MIN:
        return float(series.min())
    if fn is SummarizeFunction.MAX:
        return float(series.max())
    return float(series.mean())


# Summary-header statistic label -> (function, decimals to round to).
STATISTICS: Dict[str, tuple[SummarizeFunction, Optional[int]]] = {
    "NUM": (SummarizeFunction.COUNT, None),
    "SUM": (SummarizeFunction.SUM, None),
    "AVG": (SummarizeFunction.AVERAGE, 2),
    "MIN": (SummarizeFunction.MIN, None),
    "MAX": (SummarizeFunction.MAX, None),
    "DEV": (SummarizeFunction.STDEV, None),
}


def compute_statistic(label: str, values: Iterable[object]) -> Optional[float]:
    try:
        fn, decimals = STATISTICS[label]
    except KeyError:
        raise ConfigError(f"Unknown statistic {label!r}") from None
    result = summarize(fn, values)
    if result is not None and decimals is not None:
        return round(result, decimals)
    return result
