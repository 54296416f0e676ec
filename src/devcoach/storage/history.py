# src/devcoach/storage/history.py

from __future__ import annotations

import logging
from pathlib import Path

from .json_files import read_json, write_json

logger = logging.getLogger(__name__)


class CommandHistory:
    """Console input history (JSON list of strings, newest last)."""

    def __init__(self, path: str | Path | None = "history.json", *, max_entries: int = 100) -> None:
        self._path = Path(path) if path is not None else None
        self.max_entries = max(1, int(max_entries))
        self._items: list[str] = []

    def load(self) -> list[str]:
        raw = read_json(self._path, [])
        if not isinstance(raw, list) or not all(isinstance(x, str) and x.strip() for x in raw):
            logger.warning("History file %s is invalid. Starting with empty history.", self._path)
            raw = []
        self._items = list(raw)[-self.max_entries :]
        logger.info("Loaded %d commands from history", len(self._items))
        return self.entries()

    def entries(self) -> list[str]:
        return list(self._items)

    def add(self, command: str) -> bool:
        """Returns False for empty input or a repeat of the last command."""
        text = (command or "").strip()
        if not text:
            return False
        if self._items and self._items[-1] == text:
            return False
        self._items.append(text)
        self._trim()
        return True

    def resize(self, max_entries: int) -> None:
        """Apply a new cap to the live history (oldest entries go first)."""
        self.max_entries = max(1, int(max_entries))
        self._trim()

    def _trim(self) -> None:
        if len(self._items) > self.max_entries:
            del self._items[: len(self._items) - self.max_entries]

    def save(self) -> None:
        write_json(self._path, self._items)
        logger.info("Saved %d history entries", len(self._items))
