# checkins/checkin_log.py

from __future__ import annotations

import copy
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from ..errors import FileIOError, ValidationError
from ..storage.json_files import is_file_corrupted, read_json, write_json
from .checkin_models import DailyCheckinLogEntry, ExecutedCheckin

logger = logging.getLogger(__name__)


class CheckinLog:
    """
    Append-only record of which scheduled check-ins actually fired, per local date.

    Recording the same check-in id twice on one date is a no-op that still
    counts as recorded.
    """

    def __init__(self, path: str | Path | None = "daily_checkins.json") -> None:
        self._path = Path(path) if path is not None else None
        self._entries: list[DailyCheckinLogEntry] = self._load()
        logger.info("CheckinLog ready path=%s days=%s", self._path, len(self._entries))

    def _load(self) -> list[DailyCheckinLogEntry]:
        if self._path is None:
            return []
        if is_file_corrupted(self._path):
            logger.warning("Daily check-in log %s appears to be corrupted. Starting with empty log.", self._path)
            return []

        raw = read_json(self._path, [])
        if not isinstance(raw, list):
            logger.warning("Daily check-in log %s must hold a list. Starting with empty log.", self._path)
            return []

        out: list[DailyCheckinLogEntry] = []
        for i, item in enumerate(raw, start=1):
            try:
                out.append(DailyCheckinLogEntry.from_dict(item))
            except ValueError as e:
                logger.warning("Skipping daily check-in entry %d: %s", i, e)
        return out

    def _persist(self, previous: list[DailyCheckinLogEntry]) -> None:
        try:
            write_json(self._path, self.to_list())
        except FileIOError:
            self._entries = previous
            raise

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    def entries(self) -> list[DailyCheckinLogEntry]:
        return copy.deepcopy(self._entries)

    def entry_for(self, date: str) -> DailyCheckinLogEntry | None:
        for e in self._entries:
            if e.date == date:
                return e
        return None

    def executed_ids(self, date: str) -> set[str]:
        entry = self.entry_for(date)
        if entry is None:
            return set()
        return {e.scheduled_time_id for e in entry.executed_checkins}

    def record_execution(self, scheduled_time_id: str, now: datetime | None = None) -> bool:
        """
        Record a firing for today's (local) date.

        Returns True if newly recorded, False if it was already there.
        """
        if not isinstance(scheduled_time_id, str) or not scheduled_time_id:
            raise ValidationError("Scheduled time ID must be a non-empty string")

        now = now or datetime.now().astimezone()
        today = now.date().isoformat()

        entry = self.entry_for(today)
        if entry is not None and entry.has(scheduled_time_id):
            logger.info("Scheduled check-in %s already recorded for %s.", scheduled_time_id, today)
            return False

        previous = copy.deepcopy(self._entries)
        if entry is None:
            entry = DailyCheckinLogEntry(date=today)
            self._entries.append(entry)
        entry.executed_checkins.append(
            ExecutedCheckin(scheduled_time_id=scheduled_time_id, actual_timestamp=now.isoformat())
        )
        self._persist(previous)
        logger.info("Executed check-in %s recorded for %s.", scheduled_time_id, today)
        return True

    def clear(self) -> None:
        previous = copy.deepcopy(self._entries)
        self._entries = []
        self._persist(previous)
        logger.info("Daily check-in log cleared.")

    def stats(self) -> dict[str, Any]:
        return {
            "total_days": len(self._entries),
            "total_executions": sum(len(e.executed_checkins) for e in self._entries),
            "most_recent": self._entries[-1].date if self._entries else None,
            "oldest": self._entries[0].date if self._entries else None,
        }
