#!/usr/bin/env python3
"""Consolidate labelled totals from a folder of workbooks into a summary workbook with pivot views."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List

from sheet_harvest import XlsxWorkbookGateway
from trade_summary import (
    ConfigError,
    OutputDestinationError,
    PipelineConfig,
    RunReport,
    build_demo_config,
    build_demo_gateway,
    load_config,
    run_pipeline,
)


DEFAULT_OUTPUT_DIR = Path("summary_excels")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Read the figure next to a label (default 'Total') on every sheet of every workbook "
            "in a folder, write a summary table with statistics, and build pivot views over it."
        )
    )
    parser.add_argument(
        "input_dir",
        nargs="?",
        type=Path,
        help="Folder containing the input .xlsx workbooks.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON pipeline configuration (inputSource, outputDestination, pivotDefinitions, ...).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help=f"Destination folder for the summary workbook (default: {DEFAULT_OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--label",
        type=str,
        help="Label whose right-hand neighbour is extracted (default: Total).",
    )
    parser.add_argument(
        "--fallback-label",
        dest="fallback_labels",
        action="append",
        metavar="TEXT",
        help="Label to try when the main label is missing; repeat to add more, tried in order.",
    )
    parser.add_argument(
        "--data-start-row",
        type=int,
        help="First row of the summary data body (default: 8).",
    )
    parser.add_argument(
        "--sort-sheets",
        action="store_true",
        default=None,
        help="Process sheets alphabetically instead of in workbook order.",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        metavar="YYYY-MM-DD",
        help="Run date used in the output file name (default: today).",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Summarize the built-in demo trade workbooks instead of reading a folder.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress at INFO level.",
    )
    return parser


def resolve_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> PipelineConfig:
    if args.demo:
        if args.input_dir or args.config:
            parser.error("Do not supply an input folder or --config when using --demo.")
        config = build_demo_config(args.output or DEFAULT_OUTPUT_DIR)
    elif args.config:
        config = load_config(args.config)
        if args.input_dir:
            config = config.with_overrides(input_source=args.input_dir)
    elif args.input_dir:
        config = PipelineConfig(input_source=args.input_dir, output_destination=DEFAULT_OUTPUT_DIR)
    else:
        parser.error("Provide an input folder, --config, or use --demo.")

    fallback = tuple(args.fallback_labels) if args.fallback_labels else None
    return config.with_overrides(
        output_destination=args.output,
        search_label=args.label,
        fallback_labels=fallback,
        data_start_row=args.data_start_row,
        sort_sheets=args.sort_sheets,
    )


def print_report(report: RunReport) -> None:
    for line in report.summary_lines():
        print(line)
    issues = report.diagnostics.entries
    if not issues:
        return
    print("Diagnostics:")
    for record in issues:
        location = " / ".join(part for part in (record["Document"], record["Sheet"]) if part)
        print(f" - {location}: {record['Issue']} ({record['Detail']})")


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = resolve_config(args, parser)
        gateway = build_demo_gateway() if args.demo else XlsxWorkbookGateway()
        report = run_pipeline(config, gateway, run_date=args.date)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    except OutputDestinationError as exc:
        print(f"Summary run aborted: {exc}", file=sys.stderr)
        return 1

    print_report(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
