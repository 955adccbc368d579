"""Summary table and pivot views over harvested workbook figures."""
from .aggregates import SummarizeFunction, summarize
from .config import PipelineConfig, PivotDefinition, default_pivot_definitions, load_config
from .demo import build_demo_config, build_demo_gateway
from .excel import OutputWorkbook
from .exceptions import (
    ConfigError,
    InsufficientData,
    OutputDestinationError,
    OutputTableMissing,
    SummaryError,
)
from .pipeline import RunReport, run_pipeline
from .pivot import PivotView, aggregate, build_pivot, relation_from_table
from .summary import SummaryTable, build_summary
from .utils import output_filename

__all__ = [
    "ConfigError",
    "InsufficientData",
    "OutputDestinationError",
    "OutputTableMissing",
    "OutputWorkbook",
    "PipelineConfig",
    "PivotDefinition",
    "PivotView",
    "RunReport",
    "SummarizeFunction",
    "SummaryError",
    "SummaryTable",
    "aggregate",
    "build_demo_config",
    "build_demo_gateway",
    "build_pivot",
    "build_summary",
    "default_pivot_definitions",
    "load_config",
    "output_filename",
    "relation_from_table",
    "run_pipeline",
    "summarize",
]
