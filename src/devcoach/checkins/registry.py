# checkins/registry.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.state import AppState
from ..core.timeparse import parse_time_input
from ..errors import DevCoachError, SchedulingError, validate_index
from ..storage.config_store import UserConfig
from .checkin_models import CheckinEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CheckinAddResult:
    """added=False: the time already exists; `entry` is the existing one."""

    entry: CheckinEntry
    added: bool


def list_checkins(state: AppState) -> list[CheckinEntry]:
    return list(state.config.data.checkins)


def _rebuild(state: AppState) -> None:
    """Cancel every trigger and arm one per registered check-in."""
    scheduler = state.scheduler
    if scheduler is None:
        raise SchedulingError("Check-in scheduler is not running.")
    try:
        scheduler.reschedule_all(state.config.data.checkins)
    except SchedulingError:
        raise
    except Exception as e:
        raise SchedulingError(f"Failed to reschedule check-ins: {e}") from e

    for c in state.config.data.checkins:
        if c.is_valid and not scheduler.is_scheduled(c.id):
            raise SchedulingError(f"Check-in {c.time} could not be scheduled.")


def _undo(state: AppState, previous: UserConfig, what: str) -> None:
    """Best-effort restore after a failed rebuild; the caller re-raises the rebuild error."""
    state.config.restore(previous)
    try:
        state.config.save()
    except DevCoachError:
        logger.exception("Failed to re-save configuration while undoing %s", what)
    try:
        if state.scheduler is not None:
            state.scheduler.reschedule_all(state.config.data.checkins)
    except Exception:
        logger.exception("Failed to restore triggers while undoing %s", what)


def add_checkin(state: AppState, text: str) -> CheckinAddResult:
    """
    Parse `text` (HH:MM or interval), register it and rebuild all triggers.

    Raises ValidationError for bad input, FileIOError if the config cannot be
    saved and SchedulingError if the triggers cannot be rebuilt; in both
    failure cases the registry is left as it was.
    """
    time_text = parse_time_input(text)

    with state.lock:
        for existing in state.config.data.checkins:
            if existing.time == time_text:
                logger.warning("Check-in for %s already exists.", time_text)
                return CheckinAddResult(entry=existing, added=False)

        previous = state.config.snapshot()
        entry = CheckinEntry.create(time_text)
        state.config.data.checkins.append(entry)
        try:
            state.config.save()
        except DevCoachError:
            state.config.restore(previous)
            raise

        try:
            _rebuild(state)
        except SchedulingError:
            _undo(state, previous, f"add {time_text}")
            raise

    logger.info("Added check-in %s id=%s", entry.time, entry.id)
    return CheckinAddResult(entry=entry, added=True)


def remove_checkin(state: AppState, index: object) -> CheckinEntry:
    """
    Remove the check-in at 1-based `index` and rebuild all triggers.

    Rolls back the same way add_checkin does.
    """
    with state.lock:
        pos = validate_index(index, state.config.data.checkins, "Check-in index")

        previous = state.config.snapshot()
        removed = state.config.data.checkins.pop(pos)
        try:
            state.config.save()
        except DevCoachError:
            state.config.restore(previous)
            raise

        try:
            _rebuild(state)
        except SchedulingError:
            _undo(state, previous, f"remove {removed.time}")
            raise

    logger.info("Removed check-in %s id=%s", removed.time, removed.id)
    return removed
