from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable

from .analysis_aggregate import aggregate_events
from .analysis_periods import resolve_user_report_span
from .analysis_window import RollingWindow
from .analysis_write import USER_TOTALS_PER_DAY, USERS_PER_DAY, output_path, write_user_totals_per_day_csv, write_users_per_day_csv
from .config import build_report_config, load_config
from .models import ConfigurationRangeError, EditEvent, EmptyInputError, InputReadError, MalformedEventError, ReportConfig


def format_startup_header(
    *,
    input_path: Path,
    output_prefix: str,
    report: ReportConfig,
    jobs: int,
    batch_size: int,
) -> str:
    start = report.start_date.isoformat() if report.start_date else "first observed day"
    end = report.end_date.isoformat() if report.end_date else "last observed day"
    min_num_days = report.min_num_days if report.min_num_days else "off"
    lines = [
        "┌──────────────────────────────────────────────────────────────┐",
        "│                        edit-activity                         │",
        "└──────────────────────────────────────────────────────────────┘",
        "",
        "Run plan:",
        f"1) Read edits: {input_path}",
        f"   Jobs: {jobs}  Batch size: {batch_size:,}  Name tie-break: {report.name_tie_break}",
        f"2) Per-day totals: every observed day, rolling {report.window_days}-day window, super users >= {report.super_user_days} days",
        f"3) Per-user rows: {start} .. {end}, users with >= {report.min_edit_days} edit days (min span: {min_num_days})",
        f"4) Write reports: {output_prefix}{USER_TOTALS_PER_DAY}, {output_prefix}{USERS_PER_DAY}",
        "",
    ]
    return "\n".join(lines)


def _fail(stage: str, err: BaseException) -> int:
    print(f"Error ({stage}): {err}", file=sys.stderr)
    return 2


def run_analysis(*, args: argparse.Namespace, events: Iterable[EditEvent] | None = None) -> int:
    try:
        report = build_report_config(load_config(args.config), args)
    except ValueError as e:
        return _fail("config", e)

    input_path = Path(args.input_filename)
    output_prefix = str(args.output_prefix or "")
    jobs = max(1, int(args.jobs))
    batch_size = int(args.batch_size)
    print(format_startup_header(input_path=input_path, output_prefix=output_prefix, report=report, jobs=jobs, batch_size=batch_size))

    if events is None:
        from .source import iter_osm_edit_events

        events = iter_osm_edit_events(input_path)

    try:
        index = aggregate_events(events, jobs=jobs, batch_size=batch_size, tie_break=report.name_tie_break)
    except (FileNotFoundError, InputReadError) as e:
        return _fail("input", e)
    except MalformedEventError as e:
        return _fail("aggregate", e)
    print(f"All data read in. Have {index.num_users:,} users & {index.num_days:,} days")

    try:
        observed = index.observed_range()
    except EmptyInputError as e:
        return _fail("observed range", e)

    try:
        user_span = resolve_user_report_span(
            observed,
            start_date=report.start_date,
            end_date=report.end_date,
            min_num_days=report.min_num_days,
        )
    except ConfigurationRangeError as e:
        return _fail("report span", e)

    engine = RollingWindow(index, window_days=report.window_days, super_user_days=report.super_user_days)

    totals_path = output_path(output_prefix, USER_TOTALS_PER_DAY)
    print(f"Writing per-day totals for {observed.start.isoformat()}..{observed.end.isoformat()} ({len(observed):,} days)...")
    write_user_totals_per_day_csv(totals_path, engine, observed)

    users_path = output_path(output_prefix, USERS_PER_DAY)
    print(f"Writing per-user rows for {user_span.start.isoformat()}..{user_span.end.isoformat()} ({len(user_span):,} days)...")
    rows = write_users_per_day_csv(users_path, engine, user_span, min_edit_days=report.min_edit_days)

    print(f"Wrote {rows:,} per-user rows.")
    print(f"Done. Reports in: {totals_path.parent.resolve()}")
    return 0
