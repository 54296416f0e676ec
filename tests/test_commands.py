# tests/test_commands.py

from __future__ import annotations

import pytest

from devcoach.cli.commands import CommandRegistry, registry
from devcoach.errors import FileIOError, ValidationError
from devcoach.storage import config_store as config_store_mod


def run(state, line: str, emitted: list[str] | None = None) -> str:
    out = registry.handle(state, line, emit=emitted.append if emitted is not None else None)
    assert out is not None
    return out


def test_command_registry_routes_and_emits(state) -> None:
    reg = CommandRegistry()
    seen: list[str] = []

    def handler(state, args, emit):
        if emit is not None:
            emit("note")
        return "done:" + ",".join(args)

    reg.register("a", handler, "a", aliases=["alias"])

    assert reg.handle(state, "/a x y", emit=seen.append) == "done:x,y"
    assert reg.handle(state, "/ALIAS") == "done:"
    assert seen == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_command_errors_become_user_messages(state) -> None:
    reg = CommandRegistry()

    def bad_input(state, args, emit):
        raise ValidationError("Task index must be between 1 and 0")

    def bad_disk(state, args, emit):
        raise FileIOError("disk full")

    reg.register("v", bad_input, "v")
    reg.register("f", bad_disk, "f")

    assert reg.handle(state, "/v") == "Invalid input: Task index must be between 1 and 0"
    assert "file permissions" in (reg.handle(state, "/f") or "")


def test_help_lists_every_command(state) -> None:
    text = run(state, "/help")
    for name in ("/todo", "/config", "/checkin", "/exit"):
        assert name in text


def test_todo_flow(state) -> None:
    assert run(state, "/todo list").startswith("No tasks yet")
    assert run(state, "/todo add write the release notes") == 'Added task: "write the release notes"'
    run(state, "/todo add fix flaky test")

    started = run(state, "/todo start 1")
    assert "is now in progress" in started

    switched = run(state, "/todo start 2")
    assert 'Task "write the release notes" was put on hold.' in switched

    assert run(state, "/todo complete 2") == 'Task "fix flaky test" marked as completed.'
    assert "already completed" in run(state, "/todo start 2")

    listing = run(state, "/todo list")
    assert "1. [ON-HOLD] write the release notes" in listing
    assert "2. [COMPLETED] fix flaky test" in listing

    assert run(state, "/todo remove 1") == 'Removed task: "write the release notes"'
    assert run(state, "/todo remove 5") == "Invalid input: Task index must be between 1 and 1"
    assert "Tasks backed up to:" in run(state, "/todo backup")


def test_todo_usage_messages(state) -> None:
    assert run(state, "/todo").startswith("Usage: /todo")
    assert run(state, "/todo add") == "Usage: /todo add <task description>"
    assert "Unknown /todo subcommand" in run(state, "/todo frobnicate")


def test_config_set_get_list(state) -> None:
    assert run(state, "/config set max_history 20") == "Config set: max_history = 20"
    assert run(state, "/config get max_history") == "Config max_history: 20"

    assert run(state, "/config set ai_api_key abcd1234efgh5678") == "Config set: ai_api_key = abcd...5678"
    listing = run(state, "/config list")
    assert "ai_api_key: abcd...5678" in listing
    assert "1234efgh" not in listing

    assert run(state, "/config get nope") == 'Invalid input: Config key "nope" not found.'
    assert run(state, "/config set auto_save perhaps") == "Invalid input: auto_save must be true or false"


def test_config_set_reports_save_failure(state, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(*_a, **_k) -> None:
        raise FileIOError("disk full")

    monkeypatch.setattr(config_store_mod, "write_json", boom)
    assert "file permissions" in run(state, "/config set theme dark")
    assert state.config.data.theme == "default"


def test_config_reset_rebuilds_triggers(state) -> None:
    run(state, "/checkin add 09:00")
    assert state.scheduler.scheduled

    assert run(state, "/config reset") == "Configuration reset to defaults."
    assert state.config.data.checkins == []
    assert state.scheduler.scheduled == {}


def test_config_test_and_status(state) -> None:
    emitted: list[str] = []
    assert run(state, "/config test", emitted).startswith("AI connection failed")
    assert emitted == ["Testing AI connection..."]

    state.config.data.ai_api_key = "key"
    assert run(state, "/config test").startswith("AI connection OK")

    status = run(state, "/config status")
    assert "AI API key: set (source: config)" in status
    assert "Models (priority -> fallback): model-a, model-b" in status
    assert "Tasks: 0 (0 pending, 0 in-progress, 0 on-hold, 0 completed)" in status
    assert "Current task: (none)" in status

    run(state, "/todo add write docs")
    run(state, "/todo add fix bug")
    run(state, "/todo start 2")
    status = run(state, "/config status")
    assert "Tasks: 2 (1 pending, 1 in-progress, 0 on-hold, 0 completed)" in status
    assert "Current task: fix bug" in status


def test_config_max_history_applies_to_live_history(state) -> None:
    assert run(state, "/config set max_history 2") == "Config set: max_history = 2"

    for cmd in ("/todo list", "/help", "/checkin list", "/config list", "/todo list"):
        state.history.add(cmd)

    assert state.history.entries() == ["/config list", "/todo list"]


def test_config_max_history_shrink_trims_existing_entries(state) -> None:
    for cmd in ("a", "b", "c", "d"):
        state.history.add(cmd)

    run(state, "/config set max_history 3")
    assert state.history.entries() == ["b", "c", "d"]

    run(state, "/config reset")
    assert state.history.max_entries == 100


def test_checkin_flow(state) -> None:
    assert run(state, "/checkin list").startswith("No check-in times scheduled yet")
    assert run(state, "/checkin add 09:00") == "Added check-in for 09:00."
    assert run(state, "/checkin add 09:00") == "Check-in for 09:00 already exists."
    assert run(state, "/checkin add 17:30") == "Added check-in for 17:30."
    assert run(state, "/checkin list") == "Your scheduled check-in times:\n1. 09:00\n2. 17:30"

    assert run(state, "/checkin remove 1") == "Removed check-in for 09:00."
    assert run(state, "/checkin remove 9") == "Invalid input: Check-in index must be between 1 and 1"
    assert run(state, "/checkin add whenever").startswith("Invalid input:")


def test_checkin_add_reports_scheduling_failure(state) -> None:
    state.scheduler.fail = True
    assert run(state, "/checkin add 09:00").startswith("Failed to schedule check-in:")
    assert state.config.data.checkins == []


def test_checkin_test_status_missed(state) -> None:
    emitted: list[str] = []
    assert run(state, "/checkin test", emitted) == "Notification test completed."
    assert emitted == ["Testing notification system..."]
    assert len(state.notifier.sent) == 1

    status = run(state, "/checkin status")
    assert status.startswith("Scheduled jobs: 0")
    assert "Last check-in: never" in status

    assert run(state, "/checkin missed").startswith(("No missed check-ins", "Missed check-ins"))

    state.scheduler = None
    assert run(state, "/checkin status") == "Check-in scheduler is not running."
