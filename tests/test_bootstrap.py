# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path

from devcoach.cli.bootstrap import create_initial_state, load_command_history, save_command_history
from devcoach.connectors.console_connector import run_console_loop
from devcoach.llm.client import CoachLLMClient
from devcoach.llm.offline import OfflineLLMClient
from devcoach.storage.history import CommandHistory


def _scripted(*lines: str):
    queue = list(lines)

    def _input(_prompt: str) -> str:
        if not queue:
            raise EOFError
        return queue.pop(0)

    return _input


def test_create_initial_state_wires_real_stores(settings) -> None:
    state = create_initial_state(settings=settings)

    assert state.persistent
    assert isinstance(state.llm, CoachLLMClient)
    assert state.task_store.path == settings.tasks_path
    assert state.config.path == settings.config_path
    assert state.scheduler is None


def test_broken_llm_settings_fall_back_to_offline(settings) -> None:
    settings.llm_base_url = ""
    state = create_initial_state(settings=settings)
    assert isinstance(state.llm, OfflineLLMClient)


def test_unusable_data_dir_degrades_to_memory(settings, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", "utf-8")
    data_dir = blocker / "data"
    settings.data_dir = data_dir
    settings.config_path = data_dir / "config.json"
    settings.tasks_path = data_dir / "tasks.json"
    settings.checkin_log_path = data_dir / "daily_checkins.json"
    settings.history_path = data_dir / "history.json"

    state = create_initial_state(settings=settings)

    assert state.persistent is False
    assert state.task_store.path is None
    state.task_store.add("still works in memory")
    assert state.task_store.count() == 1


def test_history_round_trip(state, settings) -> None:
    state.history.add("/todo list")
    state.history.add("/todo list")
    state.history.add("hello")
    save_command_history(state)

    state.history = CommandHistory(settings.history_path)
    assert load_command_history(state) == ["/todo list", "hello"]


def test_history_is_capped(tmp_path: Path) -> None:
    history = CommandHistory(tmp_path / "history.json", max_entries=3)
    for i in range(5):
        history.add(f"cmd {i}")
    assert history.entries() == ["cmd 2", "cmd 3", "cmd 4"]
    assert history.add("   ") is False


def test_auto_save_off_skips_history_write(state, settings) -> None:
    state.config.data.auto_save = False
    state.history.add("hello")
    save_command_history(state)
    assert not Path(settings.history_path).exists()


def test_console_loop_routes_commands_and_chat(state, capsys) -> None:
    run_console_loop(state, input_fn=_scripted("/todo add write tests", "", "how am I doing?", "/exit", "never read"))

    out = capsys.readouterr().out
    assert 'Added task: "write tests"' in out
    assert "API key not set" in out
    assert "See you next time" in out
    assert state.task_store.count() == 1
    assert state.history.entries() == ["/todo add write tests", "how am I doing?", "/exit"]


def test_console_loop_stops_on_eof(state, capsys) -> None:
    state.config.data.ai_api_key = "key"
    run_console_loop(state, input_fn=_scripted("hi"))
    assert "AI Coach: ok" in capsys.readouterr().out
