"""Pipeline configuration.

A single immutable :class:`PipelineConfig` is built once (from a JSON document,
command-line flags, or both) and passed to every component that needs it.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from sheet_harvest.constants import DEFAULT_SEARCH_LABEL

from .aggregates import STATISTICS, SummarizeFunction
from .constants import (
    DEFAULT_DATA_START_ROW,
    DEFAULT_DIAGNOSTICS_TABLE,
    DEFAULT_STATISTICS,
    DEFAULT_SUMMARY_TABLE,
    SOURCE_COLUMN,
    TAB_COLUMN,
    VALUE_COLUMN,
)
from .exceptions import ConfigError
from .utils import sheet_name_problem


@dataclass(frozen=True, slots=True)
class PivotDefinition:
    name: str
    row_key: str
    value_key: str
    fn: SummarizeFunction
    col_key: Optional[str] = None
    show_totals: bool = False
    sort_by_value_descending: bool = False
    min_rows: int = 1

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PivotDefinition":
        missing = [key for key in ("name", "rowKey", "valueKey", "fn") if not payload.get(key)]
        if missing:
            raise ConfigError(f"Pivot definition is missing {', '.join(missing)}: {dict(payload)!r}")
        min_rows = int(payload.get("minRows", 1))
        if min_rows < 0:
            raise ConfigError(f"minRows must not be negative for pivot {payload['name']!r}")
        return cls(
            name=str(payload["name"]),
            row_key=str(payload["rowKey"]),
            value_key=str(payload["valueKey"]),
            fn=SummarizeFunction.parse(str(payload["fn"])),
            col_key=payload.get("colKey") or None,
            show_totals=bool(payload.get("showTotals", False)),
            sort_by_value_descending=bool(payload.get("sortByValueDescending", False)),
            min_rows=min_rows,
        )


def default_pivot_definitions() -> Tuple[PivotDefinition, ...]:
    titles = {
        SummarizeFunction.SUM: "SUM BY SOURCE",
        SummarizeFunction.COUNT: "COUNT BY SOURCE",
        SummarizeFunction.COUNT_ANY: "COUNTA BY SOURCE",
        SummarizeFunction.MIN: "MIN BY SOURCE",
        SummarizeFunction.MAX: "MAX BY SOURCE",
        SummarizeFunction.AVERAGE: "AVERAGE BY SOURCE",
        SummarizeFunction.STDEV: "STDEV BY SOURCE",
    }
    per_function = [
        PivotDefinition(name=title, row_key=SOURCE_COLUMN, value_key=VALUE_COLUMN, fn=fn, show_totals=True)
        for fn, title in titles.items()
    ]
    ranked = PivotDefinition(
        name="RANKED BY TOTAL",
        row_key=SOURCE_COLUMN,
        col_key=TAB_COLUMN,
        value_key=VALUE_COLUMN,
        fn=SummarizeFunction.SUM,
        show_totals=True,
        sort_by_value_descending=True,
    )
    return (*per_function, ranked)


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    input_source: Path
    output_destination: Path
    search_label: str = DEFAULT_SEARCH_LABEL
    fallback_labels: Tuple[str, ...] = ()
    data_start_row: int = DEFAULT_DATA_START_ROW
    statistics: Tuple[str, ...] = DEFAULT_STATISTICS
    summary_table_name: str = DEFAULT_SUMMARY_TABLE
    diagnostics_table_name: str = DEFAULT_DIAGNOSTICS_TABLE
    sort_sheets: bool = False
    pivot_definitions: Tuple[PivotDefinition, ...] = field(default_factory=default_pivot_definitions)

    def __post_init__(self) -> None:
        if not self.search_label:
            raise ConfigError("searchLabel must not be empty")
        unknown = [name for name in self.statistics if name not in STATISTICS]
        if unknown:
            raise ConfigError(f"Unknown statistics: {', '.join(unknown)}")
        if self.data_start_row < self.minimum_data_start_row:
            raise ConfigError(
                f"dataStartRow {self.data_start_row} leaves no room for {len(self.statistics)} "
                f"statistic row(s) and the caption row; use at least {self.minimum_data_start_row}"
            )
        names = [definition.name for definition in self.pivot_definitions]
        for name in (self.summary_table_name, self.diagnostics_table_name, *names):
            problem = sheet_name_problem(name)
            if problem:
                raise ConfigError(f"Invalid output table name {name!r}: {problem}")
        # Excel sheet names are case-insensitive.
        if self.summary_table_name.casefold() == self.diagnostics_table_name.casefold():
            raise ConfigError(
                f"summaryTableName and diagnosticsTableName must differ: {self.summary_table_name!r}"
            )
        folded = [name.casefold() for name in names]
        reserved = {self.summary_table_name.casefold(), self.diagnostics_table_name.casefold()}
        clashes = sorted(
            {name for name, key in zip(names, folded) if folded.count(key) > 1 or key in reserved}
        )
        if clashes:
            raise ConfigError(f"Pivot names must be unique and distinct from output tables: {clashes}")

    @property
    def minimum_data_start_row(self) -> int:
        return len(self.statistics) + 2

    @property
    def caption_row(self) -> int:
        return self.data_start_row - 1

    @property
    def labels(self) -> Tuple[str, ...]:
        ordered = [self.search_label]
        ordered.extend(label for label in self.fallback_labels if label not in ordered)
        return tuple(ordered)

    @property
    def source_name(self) -> str:
        return Path(self.input_source).name or str(self.input_source)

    def with_overrides(self, **changes: Any) -> "PipelineConfig":
        return replace(self, **{key: value for key, value in changes.items() if value is not None})

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any], base_dir: Path | None = None) -> "PipelineConfig":
        base_dir = base_dir or Path.cwd()
        try:
            input_source = payload["inputSource"]
            output_destination = payload["outputDestination"]
        except KeyError as exc:
            raise ConfigError(f"Configuration is missing {exc.args[0]!r}") from None

        kwargs: Dict[str, Any] = {
            "input_source": _resolve(base_dir, input_source),
            "output_destination": _resolve(base_dir, output_destination),
        }
        if "searchLabel" in payload:
            kwargs["search_label"] = str(payload["searchLabel"])
        if "fallbackLabels" in payload:
            kwargs["fallback_labels"] = tuple(str(label) for label in payload["fallbackLabels"])
        if "dataStartRow" in payload:
            kwargs["data_start_row"] = int(payload["dataStartRow"])
        if "statistics" in payload:
            kwargs["statistics"] = tuple(str(name) for name in payload["statistics"])
        if "summaryTableName" in payload:
            kwargs["summary_table_name"] = str(payload["summaryTableName"])
        if "diagnosticsTableName" in payload:
            kwargs["diagnostics_table_name"] = str(payload["diagnosticsTableName"])
        if "sortSheets" in payload:
            kwargs["sort_sheets"] = bool(payload["sortSheets"])
        if "pivotDefinitions" in payload:
            kwargs["pivot_definitions"] = parse_pivot_definitions(payload["pivotDefinitions"])
        return cls(**kwargs)


def parse_pivot_definitions(items: Sequence[Mapping[str, Any]]) -> Tuple[PivotDefinition, ...]:
    if not isinstance(items, (list, tuple)):
        raise ConfigError("pivotDefinitions must be a list")
    return tuple(PivotDefinition.from_mapping(item) for item in items)


def _resolve(base_dir: Path, value: object) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base_dir / path


def load_config(path: Path) -> PipelineConfig:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Configuration file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration file {path} must hold a JSON object")
    return PipelineConfig.from_mapping(payload, base_dir=path.parent)
