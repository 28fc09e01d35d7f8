from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date, timedelta

from .models import TaskEntry

_INTEGER = re.compile(r"[+-]?\d+")


class FormError(ValueError):
    pass


def parse_minutes(text: str) -> int:
    value = text.strip()
    if not _INTEGER.fullmatch(value):
        raise FormError(f"Duration must be a whole number of minutes, got {text!r}.")
    return int(value)


def duration_warning(minutes: int, max_minutes: int) -> str | None:
    if minutes < 0:
        return f"duration {minutes} is negative."
    if minutes > max_minutes:
        return f"duration {minutes} exceeds warning threshold ({max_minutes})."
    return None


def parse_day(text: str | None, today: date | None = None) -> date:
    today = today or date.today()
    value = (text or "").strip().lower()
    if not value or value == "today":
        return today
    if value == "yesterday":
        return today - timedelta(days=1)
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise FormError(f"Invalid date {text!r}. Use YYYY-MM-DD.") from exc


@dataclass(frozen=True)
class NewEntryForm:
    entry_date: date
    project: str
    description: str
    duration: str

    @property
    def is_valid(self) -> bool:
        try:
            self.validate()
        except FormError:
            return False
        return True

    def validate(self) -> tuple[date, str, str, int]:
        if not self.project:
            raise FormError("Project is required.")
        if not self.description:
            raise FormError("Description is required.")
        minutes = parse_minutes(self.duration)
        return self.entry_date, self.project, self.description, minutes


@dataclass(frozen=True)
class EditEntryForm:
    entry: TaskEntry
    project: str
    description: str
    duration: str

    @classmethod
    def from_entry(cls, entry: TaskEntry) -> EditEntryForm:
        return cls(
            entry=entry,
            project=entry.project,
            description=entry.description,
            duration=str(entry.duration_minutes),
        )

    @property
    def is_valid(self) -> bool:
        try:
            self.to_entry()
        except FormError:
            return False
        return True

    def to_entry(self) -> TaskEntry:
        if not self.project:
            raise FormError("Project is required.")
        if not self.description:
            raise FormError("Description is required.")
        return replace(
            self.entry,
            project=self.project,
            description=self.description,
            duration_minutes=parse_minutes(self.duration),
        )
