from __future__ import annotations

import argparse
import datetime as dt
import json
from pathlib import Path

from .analysis_aggregate import TIE_BREAKS
from .models import ReportConfig

DEFAULTS: dict[str, object] = {
    "min_edit_days": 20,
    "start_date": None,
    "end_date": None,
    "min_num_days": 3,
    "super_user_days": 42,
    "window_days": 365,
    "name_tie_break": "largest",
}


def load_config(config_path: Path | None) -> dict:
    if config_path is None or not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {config_path}")
    return data


def _pick(args: argparse.Namespace, config: dict, key: str) -> object:
    v = getattr(args, key, None)
    if v is not None:
        return v
    if key in config:
        return config[key]
    return DEFAULTS[key]


def _as_date(value: object, key: str) -> dt.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid {key}: {value!r} (expected YYYY-MM-DD)") from None


def build_report_config(config: dict, args: argparse.Namespace) -> ReportConfig:
    """Merge config-file values with CLI flags; flags given on the command line win."""
    min_edit_days = int(_pick(args, config, "min_edit_days"))
    min_num_days_raw = _pick(args, config, "min_num_days")
    min_num_days = int(min_num_days_raw) if min_num_days_raw is not None else None
    super_user_days = int(_pick(args, config, "super_user_days"))
    window_days = int(_pick(args, config, "window_days"))
    tie_break = str(_pick(args, config, "name_tie_break") or "largest").strip().lower()

    if min_edit_days < 0:
        raise ValueError(f"min_edit_days must be >= 0, got {min_edit_days}")
    if min_num_days is not None and min_num_days < 0:
        raise ValueError(f"min_num_days must be >= 0, got {min_num_days}")
    if super_user_days <= 0:
        raise ValueError(f"super_user_days must be positive, got {super_user_days}")
    if window_days <= 0:
        raise ValueError(f"window_days must be positive, got {window_days}")
    if tie_break not in TIE_BREAKS:
        raise ValueError(f"Invalid name_tie_break: {tie_break!r} (expected one of {', '.join(TIE_BREAKS)})")

    return ReportConfig(
        min_edit_days=min_edit_days,
        start_date=_as_date(_pick(args, config, "start_date"), "start_date"),
        end_date=_as_date(_pick(args, config, "end_date"), "end_date"),
        min_num_days=min_num_days,
        super_user_days=super_user_days,
        window_days=window_days,
        name_tie_break=tie_break,
    )
