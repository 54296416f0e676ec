# src/devcoach/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..errors import friendly_error_message
from ..llm.client import get_ai_response

logger = logging.getLogger(__name__)

WELCOME = "Welcome to Dev Coach! Type /help for commands. Let's discuss your plan for today."
GOODBYE = "Exiting Dev Coach. See you next time!"


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except (OSError, ValueError):
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def console_emit(text: str) -> None:
    """Sink for scheduler echoes (called from the scheduler thread)."""
    print(f"\n[{_ts_local()}] {text}", flush=True)


def run_console_loop(state: AppState, *, input_fn=input) -> None:
    logger.info("Console connector started (persistent=%s).", state.persistent)
    _print_ts(WELCOME)
    if not state.persistent:
        _print_ts("Data directory unavailable: tasks and settings will not be saved this session.")
    if not state.api_key():
        _print_ts("No AI API key set. Use /config set ai_api_key YOUR_API_KEY to enable coaching.")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for slow operations (e.g. /config test).
        _print_ts(text)

    while True:
        try:
            user_input = input_fn("You: ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] You: {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        with state.lock:
            state.history.add(user_input)

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            _print_ts(GOODBYE)
            break

        # Commands (/help, /todo, ...); the registry takes state.lock itself.
        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception as e:
            logger.exception("Command handler crashed.")
            cmd_response = friendly_error_message(e)

        if cmd_response is not None:
            _print_ts(cmd_response)
            continue

        # Free text: one round-trip to the AI coach (outside the lock).
        try:
            reply = get_ai_response(state, user_input)
        except Exception:
            logger.exception("Console chat handler crashed.")
            _print_ts("Internal error while generating a reply.")
            continue

        _print_ts(reply)

    logger.info("Console connector finished.")
