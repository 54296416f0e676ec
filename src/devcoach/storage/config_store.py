# src/devcoach/storage/config_store.py

"""
User configuration (config.json).

A versioned record with defaults for every field. Loading merges the file
over the defaults, migrates older layouts and falls back to defaults when the
content does not validate.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any

from ..checkins.checkin_models import CheckinEntry
from ..errors import FileIOError, ValidationError
from .json_files import read_json, write_json

logger = logging.getLogger(__name__)

CONFIG_VERSION = 1

SETTABLE_KEYS = ("ai_api_key", "theme", "max_history", "auto_save")
_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


@dataclass(slots=True)
class UserConfig:
    version: int = CONFIG_VERSION
    ai_api_key: str = ""
    checkins: list[CheckinEntry] = field(default_factory=list)
    last_successful_checkin: str | None = None
    theme: str = "default"
    max_history: int = 100
    auto_save: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "ai_api_key": self.ai_api_key,
            "checkins": [c.to_dict() for c in self.checkins],
            "last_successful_checkin": self.last_successful_checkin,
            "theme": self.theme,
            "max_history": self.max_history,
            "auto_save": self.auto_save,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> UserConfig:
        """Merge `raw` over the defaults. Raises ValueError on invalid content."""
        if not isinstance(raw, dict):
            raise ValueError("configuration must be an object")

        known = {f.name for f in fields(cls)}
        dropped = sorted(set(raw) - known)
        if dropped:
            logger.debug("Ignoring unknown config keys: %s", ", ".join(dropped))

        cfg = cls()

        key = raw.get("ai_api_key", "")
        if key is None:
            key = ""
        if not isinstance(key, str):
            raise ValueError("ai_api_key must be a string")
        cfg.ai_api_key = key.strip()

        checkins_raw = raw.get("checkins", [])
        if checkins_raw is None:
            checkins_raw = []
        if not isinstance(checkins_raw, list):
            raise ValueError("Checkins must be an array")
        for i, item in enumerate(checkins_raw):
            if isinstance(item, str):
                # v0 stored bare "HH:MM" strings.
                cfg.checkins.append(CheckinEntry(time=item, id=str(uuid.uuid4())))
                continue
            try:
                cfg.checkins.append(CheckinEntry.from_dict(item))
            except ValueError as e:
                raise ValueError(f"Checkin at index {i}: {e}") from e

        last = raw.get("last_successful_checkin")
        if last is not None:
            if not isinstance(last, str):
                raise ValueError("last_successful_checkin must be null or a valid ISO string")
            try:
                datetime.fromisoformat(last)
            except ValueError as e:
                raise ValueError("last_successful_checkin must be a valid ISO date string") from e
        cfg.last_successful_checkin = last

        theme = raw.get("theme", cfg.theme)
        cfg.theme = str(theme) if theme is not None else cfg.theme

        max_history = raw.get("max_history", cfg.max_history)
        if isinstance(max_history, bool) or not isinstance(max_history, int) or max_history < 1:
            raise ValueError("max_history must be a positive number")
        cfg.max_history = max_history

        auto_save = raw.get("auto_save", cfg.auto_save)
        if not isinstance(auto_save, bool):
            raise ValueError("auto_save must be a boolean")
        cfg.auto_save = auto_save

        cfg.version = CONFIG_VERSION
        return cfg


def _coerce(key: str, raw: str) -> Any:
    value = raw.strip()
    if key == "max_history":
        try:
            n = int(value)
        except ValueError as e:
            raise ValidationError("max_history must be a positive number") from e
        if n < 1:
            raise ValidationError("max_history must be a positive number")
        return n
    if key == "auto_save":
        low = value.lower()
        if low in _TRUE:
            return True
        if low in _FALSE:
            return False
        raise ValidationError("auto_save must be true or false")
    if key == "ai_api_key" and not value:
        raise ValidationError("API key is required and must be a non-empty string")
    return value


def mask_secret(value: str) -> str:
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


class ConfigStore:
    """
    Owns the process-wide UserConfig.

    Callers mutate `data` and then call save(); methods here that mutate roll
    the record back themselves when the write fails.
    """

    def __init__(self, path: str | Path | None = "config.json") -> None:
        self._path = Path(path) if path is not None else None
        self.data = self._load()
        logger.info("ConfigStore ready path=%s checkins=%d", self._path, len(self.data.checkins))

    @property
    def path(self) -> Path | None:
        return self._path

    def _load(self) -> UserConfig:
        raw = read_json(self._path, None)
        if raw is None:
            return UserConfig()
        try:
            cfg = UserConfig.from_dict(raw)
        except ValueError as e:
            logger.warning("Configuration validation error (%s). Using default configuration.", e)
            return UserConfig()
        if isinstance(raw, dict) and raw.get("version") != CONFIG_VERSION:
            logger.info("Migrated configuration to version %d.", CONFIG_VERSION)
        return cfg

    def snapshot(self) -> UserConfig:
        return copy.deepcopy(self.data)

    def restore(self, snap: UserConfig) -> None:
        self.data = snap

    def save(self) -> None:
        write_json(self._path, self.data.to_dict())
        logger.debug("Configuration saved.")

    def _commit(self, previous: UserConfig) -> None:
        try:
            self.save()
        except FileIOError:
            self.data = previous
            raise

    def reset(self) -> None:
        previous = self.snapshot()
        self.data = UserConfig()
        self._commit(previous)
        logger.info("Configuration reset to defaults.")

    def get_value(self, key: str) -> Any:
        d = self.data.to_dict()
        if key not in d:
            raise ValidationError(f'Config key "{key}" not found.')
        return d[key]

    def set_value(self, key: str, raw: str) -> Any:
        if key not in SETTABLE_KEYS:
            raise ValidationError(f"Unknown or read-only config key: {key}. Settable keys: {', '.join(SETTABLE_KEYS)}")
        value = _coerce(key, raw)

        previous = self.snapshot()
        setattr(self.data, key, value)
        self._commit(previous)
        logger.info("Config set: %s", key)
        return value

    def mark_checkin_success(self, now: datetime) -> None:
        previous = self.snapshot()
        self.data.last_successful_checkin = now.isoformat()
        self._commit(previous)

    def last_successful_checkin(self) -> datetime | None:
        raw = self.data.last_successful_checkin
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None

    def as_display_dict(self) -> dict[str, Any]:
        d = self.data.to_dict()
        d["ai_api_key"] = mask_secret(self.data.ai_api_key)
        d["checkins"] = ", ".join(c.time for c in self.data.checkins) or "(none)"
        return d
