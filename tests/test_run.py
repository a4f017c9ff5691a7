from __future__ import annotations

import csv
import datetime as dt
from pathlib import Path

import pytest

from edit_activity.analysis_cli import _build_parser
from edit_activity.analysis_run import format_startup_header, run_analysis
from edit_activity.models import EditEvent, ReportConfig


def _ts(year: int, month: int, day: int, hour: int = 12) -> int:
    return int(dt.datetime(year, month, day, hour, tzinfo=dt.timezone.utc).timestamp())


def _args(tmp_path: Path, *extra: str):
    return _build_parser().parse_args(["-i", str(tmp_path / "history.osh.pbf"), "-p", str(tmp_path / "out" / "run_"), "--jobs", "1", *extra])


def _read(path: Path) -> list[list[str]]:
    with path.open(newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_run_writes_both_reports(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    events = [
        EditEvent(7, "old7", _ts(2020, 1, 1)),
        EditEvent(7, "seven", _ts(2020, 1, 2)),
        EditEvent(9, "nine", _ts(2020, 1, 2)),
        EditEvent(9, "nine", _ts(2020, 1, 4)),
    ]
    code = run_analysis(args=_args(tmp_path, "--min-edit-days", "2"), events=events)
    assert code == 0

    totals = _read(tmp_path / "out" / "run_user_totals_per_day.csv")
    assert totals == [
        ["date", "num_users", "rolling_yr_total", "users_ge42_days"],
        ["2020-01-01", "1", "1", "0"],
        ["2020-01-02", "2", "2", "0"],
        ["2020-01-03", "0", "2", "0"],
        ["2020-01-04", "1", "2", "0"],
    ]

    users = _read(tmp_path / "out" / "run_users_per_day.csv")
    assert users[0] == ["date", "uid", "num_edit_days_last_yr", "username", "ge42days", "mapped_days"]
    assert users[1:] == [
        ["2020-01-02", "7", "2", "seven", "no", "01.01.,02.01."],
        ["2020-01-03", "7", "2", "seven", "no", "01.01.,02.01."],
        ["2020-01-04", "7", "2", "seven", "no", "01.01.,02.01."],
        ["2020-01-04", "9", "2", "nine", "no", "02.01.,04.01."],
    ]

    out = capsys.readouterr().out
    assert "All data read in. Have 2 users & 3 days" in out
    assert "Done. Reports in:" in out


def test_short_user_span_starts_before_observed_range(tmp_path: Path) -> None:
    events = [EditEvent(1, "a", _ts(2020, 1, 1)), EditEvent(1, "a", _ts(2020, 1, 2))]
    code = run_analysis(args=_args(tmp_path, "--min-edit-days", "0", "--min-num-days", "3"), events=events)
    assert code == 0

    users = _read(tmp_path / "out" / "run_users_per_day.csv")
    dates = [r[0] for r in users[1:]]
    assert dates == ["2020-01-01", "2020-01-02"]
    totals = _read(tmp_path / "out" / "run_user_totals_per_day.csv")
    assert [r[0] for r in totals[1:]] == ["2020-01-01", "2020-01-02"]


def test_empty_input_is_fatal(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = run_analysis(args=_args(tmp_path), events=[])
    assert code == 2
    assert "Error (observed range)" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_malformed_event_is_fatal(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = run_analysis(args=_args(tmp_path), events=[EditEvent(1, "a", _ts(2020, 1, 1)), EditEvent(None, "b", _ts(2020, 1, 1))])
    assert code == 2
    assert "Error (aggregate)" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_inverted_span_fails_before_writing(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    events = [EditEvent(1, "a", _ts(2020, 1, 1)), EditEvent(1, "a", _ts(2020, 3, 1))]
    code = run_analysis(args=_args(tmp_path, "--start-date", "2020-02-10", "--end-date", "2020-02-01"), events=events)
    assert code == 2
    assert "Error (report span)" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_bad_config_is_fatal(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = tmp_path / "config.json"
    cfg.write_text('{"window_days": -3}', encoding="utf-8")
    code = run_analysis(args=_args(tmp_path, "--config", str(cfg)), events=[EditEvent(1, "a", _ts(2020, 1, 1))])
    assert code == 2
    assert "Error (config)" in capsys.readouterr().err


def test_format_startup_header_explains_run_plan() -> None:
    out = format_startup_header(
        input_path=Path("/data/history.osh.pbf"),
        output_prefix="out/",
        report=ReportConfig(start_date=dt.date(2024, 1, 1)),
        jobs=4,
        batch_size=50_000,
    )
    assert "edit-activity" in out
    assert "Run plan:" in out
    assert "1) Read edits: /data/history.osh.pbf" in out
    assert "2024-01-01 .. last observed day" in out
    assert "out/user_totals_per_day.csv" in out
    assert "Name tie-break: largest" in out
