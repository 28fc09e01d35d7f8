from __future__ import annotations

import csv
import json
from datetime import date, timedelta
from typing import Sequence, TextIO

from .models import DailyLog

COLUMNS = ["entry_id", "date", "project", "description", "duration_minutes"]


def week_bounds(day: date) -> tuple[date, date]:
    start = day - timedelta(days=day.weekday())
    end = start + timedelta(days=6)
    return start, end


def select_logs(
    logs: Sequence[DailyLog],
    *,
    start: date | None = None,
    end: date | None = None,
) -> list[DailyLog]:
    selected: list[DailyLog] = []
    for log in logs:
        if start is not None and log.log_date < start:
            continue
        if end is not None and log.log_date > end:
            continue
        selected.append(log)
    return selected


def export_rows(logs: Sequence[DailyLog]) -> list[dict[str, object]]:
    return [
        {
            "entry_id": entry.entry_id,
            "date": log.log_date.isoformat(),
            "project": entry.project,
            "description": entry.description,
            "duration_minutes": entry.duration_minutes,
        }
        for log in logs
        for entry in log.entries
    ]


def write_csv(logs: Sequence[DailyLog], output: TextIO) -> int:
    rows = export_rows(logs)
    writer = csv.DictWriter(output, fieldnames=COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return len(rows)


def write_json(logs: Sequence[DailyLog], output: TextIO) -> int:
    rows = export_rows(logs)
    json.dump(rows, output, indent=2, ensure_ascii=False)
    output.write("\n")
    return len(rows)


WRITERS = {"csv": write_csv, "json": write_json}
