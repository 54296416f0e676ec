# src/devcoach/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..checkins.checkin_log import CheckinLog
from ..storage.config_store import ConfigStore
from ..storage.history import CommandHistory
from ..tasks.task_store import TaskStore
from .ports import CheckinTriggers, LLMClient, Notifier


@dataclass
class AppState:
    """
    Application-state handle passed to every command handler and scheduler callback.

    The stores hold the live in-memory records; `lock` serializes mutations
    between the console thread and the scheduler thread.
    """

    # Store Settings on the state for easy access in other modules.
    settings: Any

    config: ConfigStore
    task_store: TaskStore
    checkin_log: CheckinLog
    history: CommandHistory

    llm: LLMClient
    notifier: Notifier
    scheduler: CheckinTriggers | None = None

    # False when the data directory could not be created (in-memory only).
    persistent: bool = True

    lock: threading.RLock = field(default_factory=threading.RLock)

    def api_key(self) -> str | None:
        """Key from config.json wins over the environment."""
        key = (self.config.data.ai_api_key or "").strip()
        if key:
            return key
        env_key = getattr(self.settings, "ai_api_key", None)
        if env_key and str(env_key).strip():
            return str(env_key).strip()
        return None
