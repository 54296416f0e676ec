# src/devcoach/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..checkins.checkin_log import CheckinLog
from ..checkins.missed import compute_missed_checkins
from ..checkins.registry import add_checkin, list_checkins, remove_checkin
from ..checkins.scheduler import send_test_notification
from ..core.state import AppState
from ..errors import DevCoachError, SchedulingError
from ..llm.client import ai_status, check_ai_connection
from ..storage.config_store import SETTABLE_KEYS, mask_secret

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /todo, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._unlocked: set[str] = set()

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        *,
        locked: bool = True,
    ) -> None:
        """
        locked=False: the handler takes state.lock itself (it makes slow
        network calls that must not block the scheduler thread).
        """
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler
        if not locked:
            self._unlocked.update([key, *(a.lower() for a in aliases)])

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            if name in self._unlocked:
                return handler(state, args, emit)
            with state.lock:
                return handler(state, args, emit)
        except DevCoachError as e:
            logger.info("/%s failed (%s): %s", name, e.kind, e)
            return e.user_message

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Exit the application.")
        return "\n".join(lines)


registry = CommandRegistry()


def _say(emit: CommandEmitter | None, text: str) -> None:
    if emit is None:
        return
    try:
        emit(text)
    except Exception:
        logger.debug("Emitter failed.", exc_info=True)


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


# ---- /todo ----

TODO_USAGE = "Usage: /todo [add <task>|list|start <index>|complete <index>|remove <index>|backup]"


def _format_task_list(state: AppState) -> str:
    tasks = state.task_store.all_tasks()
    if not tasks:
        return "No tasks yet. Add some with /todo add <task description>"
    lines = ["Your current tasks:"]
    for i, t in enumerate(tasks, start=1):
        lines.append(f"{i}. [{t.status.value.upper()}] {t.description}")
    return "\n".join(lines)


def cmd_todo(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /todo add <description>
    /todo list
    /todo start <n>      -> in-progress (the current one goes on hold)
    /todo complete <n>
    /todo remove <n>
    /todo backup
    """
    if not args:
        return TODO_USAGE

    sub = args[0].lower()
    store = state.task_store

    if sub == "add":
        description = " ".join(args[1:]).strip()
        if not description:
            return "Usage: /todo add <task description>"
        task = store.add(description)
        return f'Added task: "{task.description}"'

    if sub == "list":
        return _format_task_list(state)

    if sub == "start":
        if len(args) < 2:
            return "Usage: /todo start <task number>"
        res = store.start(args[1])
        if not res.started:
            return res.reason or "Task cannot be started."
        msg = f'Task "{res.task.description}" is now in progress.'
        if res.paused is not None:
            msg += f'\nTask "{res.paused.description}" was put on hold.'
        return msg

    if sub == "complete":
        if len(args) < 2:
            return "Usage: /todo complete <task number>"
        task = store.complete(args[1])
        return f'Task "{task.description}" marked as completed.'

    if sub == "remove":
        if len(args) < 2:
            return "Usage: /todo remove <task number>"
        task = store.remove(args[1])
        return f'Removed task: "{task.description}"'

    if sub == "backup":
        target = store.backup()
        return f"Tasks backed up to: {target}"

    return f"Unknown /todo subcommand: {sub}\n{TODO_USAGE}"


# ---- /config ----

CONFIG_USAGE = "Usage: /config [set <key> <value>|get <key>|list|reset|test|status]"


def _display(key: str, value: object) -> str:
    if key == "ai_api_key":
        return mask_secret(str(value or ""))
    return str(value)


def _config_status(state: AppState) -> str:
    info = ai_status(state)
    settings = state.settings
    lines = [
        "Status:",
        f"  AI API key: {info['api_key']} (source: {info['api_key_source']})",
        f"  AI client: {info['client']}",
        f"  Models (priority -> fallback): {info['models']}",
        f"  Endpoint: {info['base_url']}",
        f"  Chat timeout: {info['chat_timeout_seconds']}s",
        f"  Data directory: {getattr(settings, 'data_dir', '-')}"
        + ("" if state.persistent else " (unavailable, running in memory)"),
        f"  Notifications: {'ON' if getattr(settings, 'notifications_enabled', True) else 'OFF'}",
        f"  Check-ins: {len(state.config.data.checkins)}",
    ]
    store = state.task_store
    if store is not None:
        counts = ", ".join(f"{n} {status}" for status, n in store.counts().items())
        lines.append(f"  Tasks: {store.count()} ({counts})")
        current = store.in_progress()
        lines.append(f"  Current task: {current.description if current else '(none)'}")
    return "\n".join(lines)


def _reschedule_after_reset(state: AppState) -> str:
    if state.scheduler is None:
        return ""
    try:
        state.scheduler.reschedule_all(state.config.data.checkins)
    except Exception as e:
        logger.exception("Failed to rebuild check-in triggers after reset")
        return f"\nWarning: check-in triggers could not be rebuilt: {e}"
    return ""


def cmd_config(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /config set <key> <value>
    /config get <key>
    /config list
    /config reset
    /config test    -> check the AI service (runs outside the state lock)
    /config status
    """
    if not args:
        return CONFIG_USAGE

    sub = args[0].lower()

    if sub == "test":
        _say(emit, "Testing AI connection...")
        ok, message = check_ai_connection(state)
        return f"AI connection OK: {message}" if ok else f"AI connection failed: {message}"

    with state.lock:
        if sub == "set":
            if len(args) < 3:
                return f"Usage: /config set <key> <value>  (keys: {', '.join(SETTABLE_KEYS)})"
            key = args[1]
            value = state.config.set_value(key, " ".join(args[2:]))
            if key == "max_history":
                state.history.resize(value)
            return f"Config set: {key} = {_display(key, value)}"

        if sub == "get":
            if len(args) < 2:
                return "Usage: /config get <key>"
            key = args[1]
            value = state.config.get_value(key)
            if key == "checkins":
                value = ", ".join(c.time for c in state.config.data.checkins) or "(none)"
            return f"Config {key}: {_display(key, value)}"

        if sub == "list":
            lines = ["Current configuration:"]
            for key, value in state.config.as_display_dict().items():
                lines.append(f"  {key}: {value}")
            return "\n".join(lines)

        if sub == "reset":
            state.config.reset()
            state.history.resize(state.config.data.max_history)
            return "Configuration reset to defaults." + _reschedule_after_reset(state)

        if sub == "status":
            return _config_status(state)

    return f"Unknown /config subcommand: {sub}\n{CONFIG_USAGE}"


# ---- /checkin ----

CHECKIN_USAGE = "Usage: /checkin [add <time>|list|remove <index>|status|test|missed]"


def _checkin_status(state: AppState) -> str:
    scheduler = state.scheduler
    if scheduler is None:
        return "Check-in scheduler is not running."
    jobs = scheduler.jobs()
    lines = [f"Scheduled jobs: {len(jobs)}"]
    if jobs:
        lines.append("Active check-ins:")
        for i, job in enumerate(jobs, start=1):
            lines.append(f"  {i}. {job.time} (next: {job.next_run:%Y-%m-%d %H:%M})")

    log: CheckinLog = state.checkin_log
    stats = log.stats()
    lines.append(
        f"Check-in log: {stats['total_executions']} execution(s) over {stats['total_days']} day(s)"
        + (f", most recent {stats['most_recent']}" if stats["most_recent"] else "")
    )
    last = state.config.data.last_successful_checkin
    lines.append(f"Last check-in: {last or 'never'}")
    return "\n".join(lines)


def _checkin_missed(state: AppState) -> str:
    now = datetime.now().astimezone()
    missed = compute_missed_checkins(
        state.config.data.checkins,
        state.config.last_successful_checkin(),
        state.checkin_log,
        now,
        lookback_days=int(getattr(state.settings, "missed_lookback_days", 7)),
    )
    if not missed:
        return "No missed check-ins since the last one."
    lines = [f"Missed check-ins since the last one: {len(missed)}"]
    for m in missed:
        lines.append(f"  {m.date} {m.time}")
    return "\n".join(lines)


def cmd_checkin(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /checkin add <HH:MM | 1h30m | 45m>
    /checkin list
    /checkin remove <n>
    /checkin status
    /checkin test     -> send a test desktop notification
    /checkin missed
    """
    if not args:
        return CHECKIN_USAGE

    sub = args[0].lower()

    if sub == "add":
        text = " ".join(args[1:]).strip()
        if not text:
            return "Usage: /checkin add <HH:MM | 1h30m | 45m>"
        try:
            res = add_checkin(state, text)
        except SchedulingError as e:
            return f"Failed to schedule check-in: {e}"
        if not res.added:
            return f"Check-in for {res.entry.time} already exists."
        return f"Added check-in for {res.entry.time}."

    if sub == "list":
        checkins = list_checkins(state)
        if not checkins:
            return "No check-in times scheduled yet. Add one with /checkin add <HH:MM>"
        lines = ["Your scheduled check-in times:"]
        for i, c in enumerate(checkins, start=1):
            lines.append(f"{i}. {c.time}")
        return "\n".join(lines)

    if sub == "remove":
        if len(args) < 2:
            return "Usage: /checkin remove <index>"
        try:
            removed = remove_checkin(state, args[1])
        except SchedulingError as e:
            return f"Failed to reschedule check-ins: {e}"
        return f"Removed check-in for {removed.time}."

    if sub == "status":
        return _checkin_status(state)

    if sub == "test":
        _say(emit, "Testing notification system...")
        send_test_notification(state)
        return "Notification test completed."

    if sub == "missed":
        return _checkin_missed(state)

    return f"Unknown /checkin subcommand: {sub}\n{CHECKIN_USAGE}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("todo", cmd_todo, help_text="Manage your tasks: add | list | start | complete | remove | backup.")
registry.register(
    "config",
    cmd_config,
    help_text="Manage settings: set | get | list | reset | test | status.",
    locked=False,
)
registry.register(
    "checkin", cmd_checkin, help_text="Schedule daily check-ins: add | list | remove | status | test | missed."
)
