from __future__ import annotations

import csv
from pathlib import Path

from .analysis_window import RollingWindow
from .models import DayRange

USER_TOTALS_PER_DAY = "user_totals_per_day.csv"
USERS_PER_DAY = "users_per_day.csv"


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def output_path(output_prefix: str, name: str) -> Path:
    path = Path(f"{output_prefix}{name}")
    ensure_dir(path.parent)
    return path


def write_user_totals_per_day_csv(path: Path, engine: RollingWindow, day_range: DayRange) -> int:
    rows = 0
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["date", "num_users", "rolling_yr_total", f"users_ge{engine.super_user_days}_days"])
        for st in engine.iter_daily_stats(day_range):
            writer.writerow([st.day.isoformat(), st.num_users, st.rolling_total, st.super_users])
            rows += 1
    return rows


def write_users_per_day_csv(path: Path, engine: RollingWindow, day_range: DayRange, *, min_edit_days: int) -> int:
    rows = 0
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            [
                "date",
                "uid",
                "num_edit_days_last_yr",
                "username",
                f"ge{engine.super_user_days}days",
                "mapped_days",
            ]
        )
        for day in day_range.days():
            day_iso = day.isoformat()
            for u in engine.qualifying_users(day, min_edit_days):
                writer.writerow(
                    [
                        day_iso,
                        u.editor_id,
                        u.day_count,
                        u.latest_name,
                        "yes" if u.is_super_user else "no",
                        u.day_list,
                    ]
                )
                rows += 1
    return rows
