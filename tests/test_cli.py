# tests/test_cli.py

from __future__ import annotations

import io
import json
import logging
from datetime import date
from pathlib import Path

import pytest

from daily_timelog.cli import Shell, main
from daily_timelog.config import default_config, load_config
from daily_timelog.store import LogStore

TODAY = date(2024, 1, 3)


@pytest.fixture()
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(False)


@pytest.fixture()
def shell() -> Shell:
    config = default_config()
    return Shell(
        LogStore(),
        config,
        stdin=io.StringIO(),
        stdout=io.StringIO(),
        stderr=io.StringIO(),
        today=lambda: TODAY,
    )


def _out(shell: Shell) -> str:
    return shell.stdout.getvalue()


def _err(shell: Shell) -> str:
    return shell.stderr.getvalue()


def test_add_and_list(shell: Shell) -> None:
    assert shell.execute('add -p PRJ1 -d "design work" -m 90 --date 2024-01-01') == 0
    assert shell.execute("add --project PRJ2 --description review --minutes 30 --date 2024-01-01") == 0
    assert shell.execute("add -p PRJ3 -d today -m 15") == 0

    assert [log.log_date for log in shell.store.logs] == [TODAY, date(2024, 1, 1)]

    shell.execute("list --date 2024-01-01")
    listing = _out(shell)
    assert "Jan 01, 2024 — 2h" in listing
    assert "PRJ1 | design work | 1h 30m" in listing
    assert "PRJ3" not in listing.split("Jan 01, 2024")[1]


def test_add_rejects_invalid_duration(shell: Shell) -> None:
    assert shell.execute("add -p PRJ -d work -m 1.5") == 2

    assert shell.store.logs == ()
    assert "whole number" in _err(shell)


def test_add_rejects_blank_project(shell: Shell) -> None:
    assert shell.execute('add -p "  " -d work -m 10') == 2
    assert "Project is required." in _err(shell)


def test_add_warns_on_large_or_negative_duration(shell: Shell) -> None:
    shell.execute("add -p PRJ -d long -m 600")
    shell.execute("add -p PRJ -d odd -m -5")

    assert "exceeds warning threshold (480)" in _err(shell)
    assert "is negative" in _err(shell)
    assert len(shell.store.logs[0].entries) == 2


def test_edit_by_id_prefix(shell: Shell) -> None:
    shell.execute("add -p PRJ -d design -m 90")
    entry = shell.store.logs[0].entries[0]

    assert shell.execute(f"edit --id {entry.entry_id[:8]} -m 45 -d redesign") == 0

    updated = shell.store.logs[0].entries[0]
    assert updated.entry_id == entry.entry_id
    assert (updated.project, updated.description, updated.duration_minutes) == (
        "PRJ",
        "redesign",
        45,
    )


def test_edit_requires_fields(shell: Shell) -> None:
    shell.execute("add -p PRJ -d design -m 90")
    entry = shell.store.logs[0].entries[0]

    assert shell.execute(f"edit --id {entry.entry_id}") == 2
    assert "No fields provided" in _err(shell)


def test_edit_unknown_entry(shell: Shell) -> None:
    assert shell.execute("edit --id nope -m 5") == 2
    assert "Entry nope not found." in _err(shell)


def test_remove_last_entry_drops_day(shell: Shell) -> None:
    shell.execute("add -p PRJ -d design -m 90")
    entry = shell.store.logs[0].entries[0]

    assert shell.execute(f"remove --id {entry.entry_id}") == 0

    assert shell.store.logs == ()
    assert "No entries left on 2024-01-03." in _out(shell)


def test_total(shell: Shell) -> None:
    shell.execute("add -p PRJ1 -d design -m 90")
    shell.execute("add -p PRJ2 -d review -m 30")

    shell.execute("total")
    shell.execute("total --date 2024-01-01")

    assert "Jan 03, 2024 — 2h" in _out(shell)
    assert "2024-01-01: 0m" in _out(shell)


def test_export_week_to_file(shell: Shell, tmp_path: Path) -> None:
    shell.execute("add -p PRJ -d in-week -m 30 --date 2024-01-01")
    shell.execute("add -p PRJ -d other-week -m 30 --date 2023-12-31")
    target = tmp_path / "week.json"

    assert shell.execute(f"export --week 2024-01-03 --format json --output {target}") == 0

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert [row["description"] for row in payload] == ["in-week"]
    assert "Exported 1 entries for week 2024-01-01 to 2024-01-07" in _out(shell)


def test_export_to_stdout_defaults_to_csv(shell: Shell) -> None:
    shell.execute("add -p PRJ -d work -m 30")

    shell.execute("export")

    assert "entry_id,date,project,description,duration_minutes" in _out(shell)
    assert "Exported 1 entries for all days." in _err(shell)


def test_unknown_command_and_bad_quoting(shell: Shell) -> None:
    assert shell.execute("frobnicate") == 2
    assert shell.execute('add -p "unterminated') == 2
    assert shell.execute("   ") == 0
    assert shell.execute("# just a comment") == 0


def test_run_reads_until_quit(shell: Shell) -> None:
    shell.stdin = io.StringIO("add -p PRJ -d work -m 30\nquit\nadd -p PRJ -d late -m 5\n")

    assert shell.run() == 0

    assert len(shell.store.logs[0].entries) == 1
    assert shell.running is False


def test_help_lists_commands(shell: Shell) -> None:
    shell.execute("help")

    for command in ("add", "list", "edit", "remove", "total", "export"):
        assert command in _out(shell)


def test_main_init_then_shell(
    restore_logging: None,
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / "config.yaml"
    log_dir = tmp_path / "logs"

    assert main(["--config", str(config_path), "init", "--log-dir", str(log_dir),
                 "--max-minutes-per-entry", "60"]) == 0
    assert load_config(config_path).max_minutes_per_entry == 60

    monkeypatch.setattr("sys.stdin", io.StringIO("add -p PRJ -d work -m 90\nlist\n"))
    assert main(["--config", str(config_path)]) == 0

    captured = capsys.readouterr()
    assert "1h 30m" in captured.out
    assert "exceeds warning threshold (60)" in captured.err
    assert (log_dir / "daily_timelog.log").exists()


def test_main_reports_bad_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- not a mapping\n")

    assert main(["--config", str(config_path), "shell"]) == 2
    assert "must be a mapping" in capsys.readouterr().err


def test_export_to_unwritable_path_keeps_session_alive(shell: Shell, tmp_path: Path) -> None:
    target = tmp_path / "missing" / "dir" / "x.csv"
    shell.stdin = io.StringIO(
        f"add -p P -d d -m 5\nexport --output {target}\nadd -p Q -d e -m 7\n"
    )

    assert shell.run() == 0

    assert [entry.project for entry in shell.store.logs[0].entries] == ["P", "Q"]
    assert f"Cannot write {target}" in _err(shell)
    assert not target.exists()


def test_main_reports_unusable_log_dir(
    restore_logging: None, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory\n")
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"log_dir: {blocker / 'logs'}\n")

    assert main(["--config", str(config_path), "shell"]) == 2
    assert "Cannot create log directory" in capsys.readouterr().err
