from __future__ import annotations

import argparse
import datetime as dt
import json
from pathlib import Path

import pytest

from edit_activity.analysis_cli import _build_parser
from edit_activity.config import build_report_config, load_config


def test_load_config_missing_file_is_empty(tmp_path: Path) -> None:
    assert load_config(tmp_path / "nope.json") == {}
    assert load_config(None) == {}


def test_load_config_requires_object(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_defaults_without_config_or_flags() -> None:
    args = _build_parser().parse_args(["-i", "x.osh.pbf"])
    cfg = build_report_config({}, args)
    assert cfg.min_edit_days == 20
    assert cfg.min_num_days == 3
    assert cfg.start_date is None
    assert cfg.end_date is None
    assert cfg.super_user_days == 42
    assert cfg.window_days == 365
    assert cfg.name_tie_break == "largest"


def test_flags_override_config_file(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text(
        json.dumps({"min_edit_days": 5, "start_date": "2020-02-01", "name_tie_break": "legacy", "min_num_days": 10}),
        encoding="utf-8",
    )
    args = _build_parser().parse_args(["-i", "x.osh.pbf", "--config", str(p), "--min-edit-days", "7", "--end-date", "2020-03-01"])
    cfg = build_report_config(load_config(args.config), args)
    assert cfg.min_edit_days == 7
    assert cfg.start_date == dt.date(2020, 2, 1)
    assert cfg.end_date == dt.date(2020, 3, 1)
    assert cfg.name_tie_break == "legacy"
    assert cfg.min_num_days == 10


def test_invalid_config_values() -> None:
    args = argparse.Namespace()
    with pytest.raises(ValueError):
        build_report_config({"start_date": "yesterday"}, args)
    with pytest.raises(ValueError):
        build_report_config({"name_tie_break": "coin"}, args)
    with pytest.raises(ValueError):
        build_report_config({"window_days": 0}, args)
    with pytest.raises(ValueError):
        build_report_config({"min_edit_days": -1}, args)
