from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterator, Sequence

from .models import DailyLog, TaskEntry

logger = logging.getLogger(__name__)

Subscriber = Callable[[Sequence[DailyLog]], None]


class EntryNotFoundError(LookupError):
    pass


class AmbiguousEntryError(LookupError):
    pass


def normalize_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


class LogStore:
    """In-memory daily logs, newest day first.

    Logs and entries are frozen values: every mutation swaps in a new
    ``DailyLog`` and then notifies subscribers with a snapshot of ``logs``.
    Operations that find nothing to change are silent no-ops.
    """

    def __init__(self) -> None:
        self._logs: list[DailyLog] = []
        self._subscribers: list[Subscriber] = []

    @property
    def logs(self) -> tuple[DailyLog, ...]:
        return tuple(self._logs)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def add_entry(
        self,
        entry_date: date | datetime,
        project: str,
        description: str,
        duration_minutes: int,
    ) -> TaskEntry:
        day = normalize_day(entry_date)
        entry = TaskEntry(
            entry_id=str(uuid.uuid4()),
            project=project,
            description=description,
            duration_minutes=duration_minutes,
        )
        for index, log in enumerate(self._logs):
            if log.log_date == day:
                self._logs[index] = replace(log, entries=log.entries + (entry,))
                break
        else:
            self._logs.append(
                DailyLog(log_id=str(uuid.uuid4()), log_date=day, entries=(entry,))
            )
            self._logs.sort(key=lambda item: item.log_date, reverse=True)
            logger.debug("Created log for %s", day.isoformat())
        logger.debug("Added entry %s on %s", entry.entry_id, day.isoformat())
        self._notify()
        return entry

    def update_entry(self, entry: TaskEntry) -> bool:
        for index, log in enumerate(self._logs):
            for position, current in enumerate(log.entries):
                if current.entry_id != entry.entry_id:
                    continue
                entries = list(log.entries)
                entries[position] = entry
                self._logs[index] = replace(log, entries=tuple(entries))
                logger.debug("Updated entry %s", entry.entry_id)
                self._notify()
                return True
        logger.debug("Update skipped, no entry with id %s", entry.entry_id)
        return False

    def delete_entry(self, entry: TaskEntry) -> bool:
        # Structural match: an entry edited elsewhere no longer matches.
        for index, log in enumerate(self._logs):
            if entry not in log.entries:
                continue
            entries = list(log.entries)
            entries.remove(entry)
            if entries:
                self._logs[index] = replace(log, entries=tuple(entries))
            else:
                del self._logs[index]
                logger.debug("Removed empty log for %s", log.log_date.isoformat())
            logger.debug("Deleted entry %s", entry.entry_id)
            self._notify()
            return True
        logger.debug("Delete skipped, no entry equal to %s", entry.entry_id)
        return False

    def total_minutes(self, log: DailyLog) -> int:
        return sum(entry.duration_minutes for entry in log.entries)

    def log_for_date(self, entry_date: date | datetime) -> DailyLog | None:
        day = normalize_day(entry_date)
        for log in self._logs:
            if log.log_date == day:
                return log
        return None

    def entries(self) -> Iterator[tuple[DailyLog, TaskEntry]]:
        for log in self._logs:
            for entry in log.entries:
                yield log, entry

    def find_entry(self, entry_id: str) -> TaskEntry | None:
        for _, entry in self.entries():
            if entry.entry_id == entry_id:
                return entry
        return None

    def resolve_entry(self, reference: str) -> TaskEntry:
        reference = reference.strip()
        if not reference:
            raise EntryNotFoundError("Entry id is required.")
        exact = self.find_entry(reference)
        if exact is not None:
            return exact
        matches = [
            entry for _, entry in self.entries() if entry.entry_id.startswith(reference)
        ]
        if not matches:
            raise EntryNotFoundError(f"Entry {reference} not found.")
        if len(matches) > 1:
            raise AmbiguousEntryError(
                f"Entry id {reference} is ambiguous ({len(matches)} matches)."
            )
        return matches[0]

    def _notify(self) -> None:
        snapshot = self.logs
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Log store subscriber %r failed", callback)
