from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Iterator

from .models import ActivityIndex, DayRange


@dataclasses.dataclass(frozen=True)
class DailyStats:
    day: dt.date
    num_users: int
    rolling_total: int
    super_users: int


@dataclasses.dataclass(frozen=True)
class QualifyingUser:
    editor_id: int
    day_count: int
    latest_name: str
    is_super_user: bool
    days: tuple[dt.date, ...]

    @property
    def day_list(self) -> str:
        return ",".join(d.strftime("%d.%m.") for d in self.days)


class RollingWindow:
    """
    Read-only queries over a completed ActivityIndex.

    The window ending on `day` is the closed range [day - (window_days - 1), day].
    Days without an entry in the index count as days with no active editors.
    """

    def __init__(self, index: ActivityIndex, *, window_days: int = 365, super_user_days: int = 42) -> None:
        if window_days <= 0:
            raise ValueError(f"window_days must be positive, got {window_days}")
        self.index = index
        self.window_days = window_days
        self.super_user_days = super_user_days

    def window_bounds(self, day: dt.date) -> tuple[dt.date, dt.date]:
        return day - dt.timedelta(days=self.window_days - 1), day

    def daily_active_users(self, day: dt.date) -> int:
        return len(self.index.users_on(day))

    def rolling_window(self, day: dt.date) -> dict[int, list[dt.date]]:
        """Editor id -> chronologically sorted days active inside the window ending on `day`."""
        start, end = self.window_bounds(day)
        out: dict[int, list[dt.date]] = {}
        for this_day in self.index.day_users.irange(start, end):
            for editor_id in self.index.day_users[this_day]:
                days = out.get(editor_id)
                if days is None:
                    out[editor_id] = [this_day]
                else:
                    days.append(this_day)
        return out

    def super_user_count(self, day: dt.date, threshold: int | None = None) -> int:
        if threshold is None:
            threshold = self.super_user_days
        return sum(1 for days in self.rolling_window(day).values() if len(days) >= threshold)

    def qualifying_users(self, day: dt.date, min_days: int) -> list[QualifyingUser]:
        window = self.rolling_window(day)
        out: list[QualifyingUser] = []
        for editor_id in sorted(window):
            days = window[editor_id]
            if len(days) < min_days:
                continue
            out.append(
                QualifyingUser(
                    editor_id=editor_id,
                    day_count=len(days),
                    latest_name=self.index.latest_name(editor_id),
                    is_super_user=len(days) >= self.super_user_days,
                    days=tuple(days),
                )
            )
        return out

    def iter_daily_stats(self, day_range: DayRange) -> Iterator[DailyStats]:
        """
        Per-day totals for every day of `day_range`.

        Slides the window one day at a time, adding the entering day's editors and
        dropping the leaving day's, instead of rescanning the whole window per day.
        """
        counts: dict[int, int] = {}
        super_users = 0
        threshold = self.super_user_days

        def add(day: dt.date) -> None:
            nonlocal super_users
            for editor_id in self.index.users_on(day):
                c = counts.get(editor_id, 0) + 1
                counts[editor_id] = c
                if c == threshold:
                    super_users += 1

        def drop(day: dt.date) -> None:
            nonlocal super_users
            for editor_id in self.index.users_on(day):
                c = counts[editor_id]
                if c == threshold:
                    super_users -= 1
                if c == 1:
                    del counts[editor_id]
                else:
                    counts[editor_id] = c - 1

        first = True
        for day in day_range.days():
            start, end = self.window_bounds(day)
            if first:
                for this_day in self.index.day_users.irange(start, end):
                    add(this_day)
                first = False
            else:
                drop(start - dt.timedelta(days=1))
                add(end)
            yield DailyStats(
                day=day,
                num_users=self.daily_active_users(day),
                rolling_total=len(counts),
                super_users=super_users,
            )
