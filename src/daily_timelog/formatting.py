from __future__ import annotations

from typing import Sequence

from .models import DailyLog

SHORT_ID_LENGTH = 8


def duration_string(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"


def log_total(log: DailyLog) -> int:
    return sum(entry.duration_minutes for entry in log.entries)


def day_header(log: DailyLog, date_format: str, total: int | None = None) -> str:
    if total is None:
        total = log_total(log)
    return f"{log.log_date.strftime(date_format)} — {duration_string(total)}"


def short_id(entry_id: str) -> str:
    return entry_id[:SHORT_ID_LENGTH]


def format_logs(logs: Sequence[DailyLog], date_format: str) -> str:
    if not logs:
        return "No entries yet."
    lines: list[str] = []
    for log in logs:
        if lines:
            lines.append("")
        lines.append(day_header(log, date_format))
        for entry in log.entries:
            description = entry.description.replace("\n", " ")
            lines.append(
                f"  {short_id(entry.entry_id)} | {entry.project} | "
                f"{description} | {duration_string(entry.duration_minutes)}"
            )
    return "\n".join(lines)
