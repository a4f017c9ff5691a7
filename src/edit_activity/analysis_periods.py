from __future__ import annotations

import argparse
import datetime as dt
from typing import TypeVar

from .models import ConfigurationRangeError, DayRange

T = TypeVar("T", dt.date, int)


def parse_date(value: str) -> dt.date:
    s = (value or "").strip()
    try:
        return dt.date.fromisoformat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def clamp(value: T, low: T, high: T) -> T:
    if value > high:
        return high
    if value < low:
        return low
    return value


def resolve_user_report_span(
    observed: DayRange,
    *,
    start_date: dt.date | None,
    end_date: dt.date | None,
    min_num_days: int | None,
) -> DayRange:
    """
    Days to emit per-user rows for.

    Both bounds default to the observed range and are clamped into it. If the
    span is then shorter than `min_num_days`, the start is moved back by
    `min_num_days` days and is not clamped again, so it may precede the first
    observed day (those windows are simply emptier).
    """
    start = clamp(start_date or observed.start, observed.start, observed.end)
    end = clamp(end_date or observed.end, observed.start, observed.end)
    if start > end:
        raise ConfigurationRangeError(
            f"report span {start.isoformat()}..{end.isoformat()} is empty after clamping to the observed range "
            f"{observed.start.isoformat()}..{observed.end.isoformat()}"
        )
    if min_num_days and (end - start) < dt.timedelta(days=min_num_days):
        start = start - dt.timedelta(days=min_num_days)
    return DayRange(start=start, end=end)
