from __future__ import annotations

DEFAULT_SUMMARY_TABLE = "TRADE SUMMARY"
DEFAULT_DIAGNOSTICS_TABLE = "DIAGNOSTICS"
DEFAULT_DATA_START_ROW = 8

SOURCE_COLUMN = "Source"
TAB_COLUMN = "Tab"
VALUE_COLUMN = "Value"
SUMMARY_COLUMNS = [SOURCE_COLUMN, TAB_COLUMN, VALUE_COLUMN]

DEFAULT_STATISTICS = ("NUM", "SUM", "AVG", "MIN", "MAX", "DEV")

BLANK_KEY = "(blank)"
TOTAL_LABEL = "Total"
GRAND_TOTAL_LABEL = "Grand Total"

OUTPUT_PREFIX = "summary-of"
OUTPUT_SUFFIX = ".xlsx"

OUTPUT_TABLE_MISSING = "output-table-missing"
INSUFFICIENT_DATA = "insufficient-data"
PIVOT_FAILURE = "pivot-failure"
EMPTY_GROUP = "empty-group"
