# tests/conftest.py

from __future__ import annotations

import time
from pathlib import Path
from types import SimpleNamespace

import pytest

from devcoach.checkins.checkin_log import CheckinLog
from devcoach.core.state import AppState
from devcoach.storage.config_store import ConfigStore
from devcoach.storage.history import CommandHistory
from devcoach.tasks.task_store import TaskStore

from .fakes import FakeLLMClient, FakeNotifier, FakeScheduler


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="devcoach-test",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        config_path=tmp_path / "config.json",
        tasks_path=tmp_path / "tasks.json",
        checkin_log_path=tmp_path / "daily_checkins.json",
        history_path=tmp_path / "history.json",
        # LLM
        ai_api_key=None,
        llm_base_url="http://llm.invalid/v1/",
        llm_models=["model-a", "model-b"],
        chat_timeout_seconds=2.0,
        test_timeout_seconds=1.0,
        connect_timeout_seconds=1.0,
        # Check-ins
        notifications_enabled=False,
        missed_lookback_days=7,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep real JSON stores here because their persistence and
    rollback behaviour is part of what we want to test.
    """
    return AppState(
        settings=settings,
        config=ConfigStore(settings.config_path),
        task_store=TaskStore(settings.tasks_path),
        checkin_log=CheckinLog(settings.checkin_log_path),
        history=CommandHistory(settings.history_path),
        llm=FakeLLMClient(),
        notifier=FakeNotifier(),
        scheduler=FakeScheduler(),
    )


@pytest.fixture()
def new_york_tz(monkeypatch: pytest.MonkeyPatch):
    """
    Pin the process timezone to America/New_York.

    2024-03-10 02:00 is a spring-forward switch there (UTC-5 -> UTC-4),
    which lets tests cross a day with 23 hours.
    """
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() is not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
