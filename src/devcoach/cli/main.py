# src/devcoach/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the check-in scheduler in a background thread,
- the console REPL in the main thread.
"""

from __future__ import annotations

import logging
import signal
import sys

from ..checkins.scheduler import SchedulerRunner, start_scheduler_in_background
from ..cli.bootstrap import create_initial_state, load_command_history, save_command_history
from ..config import get_settings
from ..connectors.console_connector import console_emit, run_console_loop
from ..core.state import AppState
from ..errors import DevCoachError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state: AppState, runner: SchedulerRunner | None) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if runner is not None:
        try:
            runner.stop()
            runner.join(timeout=5.0)
        except Exception:
            logger.debug("Scheduler stop failed.", exc_info=True)

    with state.lock:
        save_command_history(state)
        try:
            state.config.save()
        except DevCoachError:
            logger.exception("Failed to save configuration on exit.")


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    # INFO lines would interleave with the prompt; keep the console quiet unless asked.
    console_level = max(console_level, logging.WARNING) if level_name == "INFO" else console_level

    setup_logging(log_dir=getattr(settings, "data_dir", None), console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "devcoach"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)
    load_command_history(state)

    runner = start_scheduler_in_background(state, emit=console_emit)
    if runner is None:
        console_emit("Check-in scheduler failed to start; reminders are disabled this session.")

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        # Unwinds through the finally block below.
        sys.exit(0)

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Some platforms do not support SIGTERM handlers.
        logger.debug("SIGTERM handler not installed.", exc_info=True)

    try:
        # SIGINT surfaces as KeyboardInterrupt inside input(); the loop exits cleanly.
        run_console_loop(state)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        _shutdown(state, runner)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
