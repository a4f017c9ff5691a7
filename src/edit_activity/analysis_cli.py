from __future__ import annotations

import argparse
import os
from pathlib import Path

from .analysis_aggregate import TIE_BREAKS
from .analysis_periods import parse_date
from .analysis_run import run_analysis


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Per-day and per-user edit activity stats from an OSM history file.")
    parser.add_argument("-i", "--input-filename", type=Path, required=True, help="OSM history file to read.")
    parser.add_argument("-p", "--output-prefix", type=str, default="", help="All output files will be prefixed with this string.")
    parser.add_argument(
        "--min-edit-days",
        type=int,
        default=None,
        help="Per-user output only includes editors with at least this many edit days in the rolling window (default: 20).",
    )
    parser.add_argument(
        "--start-date",
        type=parse_date,
        default=None,
        help="First day of per-user output (YYYY-MM-DD). Default: earliest day in the input.",
    )
    parser.add_argument(
        "--end-date",
        type=parse_date,
        default=None,
        help="Last day of per-user output (YYYY-MM-DD). Default: latest day in the input.",
    )
    parser.add_argument(
        "--min-num-days",
        type=int,
        default=None,
        help="Per-user output covers at least this many days; the start date is moved earlier if needed (default: 3, 0 = off).",
    )
    parser.add_argument("--config", type=Path, default=None, help="Optional JSON config file with the same settings.")
    parser.add_argument("--jobs", type=int, default=max(1, min(8, (os.cpu_count() or 4))), help="Parallel aggregation workers.")
    parser.add_argument("--batch-size", type=int, default=50_000, help="Events per worker batch.")
    parser.add_argument(
        "--name-tie-break",
        choices=list(TIE_BREAKS),
        default=None,
        help="How equal-timestamp username changes resolve: largest name wins, or the legacy order-dependent rule (default: largest).",
    )
    return parser


def main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.batch_size <= 0:
        parser.error("--batch-size must be positive")
    return run_analysis(args=args)
