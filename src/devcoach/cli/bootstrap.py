# src/devcoach/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local data directory exists (falls back to in-memory mode if not),
- wires concrete implementations into AppState (config/tasks/check-in log/LLM/notifier),
- loads and saves the console command history.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..checkins.checkin_log import CheckinLog
from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..errors import ConfigError, DevCoachError
from ..llm.client import CoachLLMClient
from ..llm.offline import OfflineLLMClient
from ..notify.desktop import DesktopNotifier
from ..storage.config_store import ConfigStore
from ..storage.history import CommandHistory
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> bool:
    """Returns False when the data directory cannot be created."""
    paths = [
        Path(settings.data_dir),
        Path(settings.config_path).parent,
        Path(settings.tasks_path).parent,
        Path(settings.checkin_log_path).parent,
        Path(settings.history_path).parent,
    ]
    try:
        for p in paths:
            p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create data directory %s: %s", settings.data_dir, e)
        return False
    return True


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    persistent = _ensure_local_dirs(settings)
    if not persistent:
        logger.warning("Running without a data directory: nothing will be saved this session.")

    def _path(value) -> Path | None:
        return Path(value) if persistent else None

    config = ConfigStore(_path(settings.config_path))

    llm_client: LLMClient
    try:
        llm_client = CoachLLMClient(settings)
    except ConfigError as e:
        # Fallback for local runs with broken LLM settings.
        logger.warning("LLM client unavailable (%s); using offline replies.", e)
        llm_client = OfflineLLMClient()

    state = AppState(
        settings=settings,
        config=config,
        task_store=TaskStore(_path(settings.tasks_path)),
        checkin_log=CheckinLog(_path(settings.checkin_log_path)),
        history=CommandHistory(_path(settings.history_path), max_entries=config.data.max_history),
        llm=llm_client,
        notifier=DesktopNotifier(
            getattr(settings, "app_name", "devcoach"),
            enabled=bool(getattr(settings, "notifications_enabled", True)),
        ),
        persistent=persistent,
    )
    return state


def load_command_history(state: AppState) -> list[str]:
    try:
        return state.history.load()
    except Exception:
        logger.exception("Failed to load command history.")
        return []


def save_command_history(state: AppState) -> None:
    if not state.config.data.auto_save:
        logger.debug("auto_save is off; command history not written.")
        return
    try:
        state.history.save()
    except DevCoachError:
        logger.exception("Failed to save command history.")
