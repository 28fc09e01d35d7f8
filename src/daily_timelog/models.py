from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path


@dataclass(frozen=True)
class Config:
    date_format: str
    max_minutes_per_entry: int
    log_dir: Path
    log_level: str
    default_export_format: str


@dataclass(frozen=True)
class TaskEntry:
    entry_id: str
    project: str
    description: str
    duration_minutes: int


@dataclass(frozen=True)
class DailyLog:
    log_id: str
    log_date: date
    entries: tuple[TaskEntry, ...] = field(default_factory=tuple)
