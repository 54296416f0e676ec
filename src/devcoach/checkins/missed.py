# checkins/missed.py

"""
Missed check-in detection.

A check-in at time T on date D is missed when D+T is already in the past,
lies after the last successful check-in (or today's midnight when there has
never been one), and the daily log has no execution of that check-in id on D.

The scan never reaches back more than `lookback_days` days. Results only
enrich the coaching prompt; nothing is fired retroactively.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta
from datetime import time as dt_time

from ..core.timeparse import split_time
from ..errors import ValidationError
from .checkin_log import CheckinLog
from .checkin_models import CheckinEntry, MissedCheckin


def _local(dt: datetime) -> datetime:
    # Naive timestamps are treated as local wall-clock time.
    return dt.astimezone()


def _wall(day: date, hour: int, minute: int) -> datetime:
    # Local offset for that wall-clock moment, not the offset of `now`.
    return datetime.combine(day, dt_time(hour, minute)).astimezone()


def compute_missed_checkins(
    checkins: Sequence[CheckinEntry],
    last_successful: datetime | None,
    log: CheckinLog,
    now: datetime,
    *,
    lookback_days: int = 7,
) -> list[MissedCheckin]:
    now = _local(now)
    midnight = _wall(now.date(), 0, 0)

    floor = _wall(now.date() - timedelta(days=max(0, lookback_days - 1)), 0, 0)
    if last_successful is not None and _local(last_successful) >= floor:
        start = _local(last_successful)
        strict = True
    else:
        start = midnight if last_successful is None else floor
        strict = False

    out: list[MissedCheckin] = []
    day = start.date()
    while day <= now.date():
        date_s = day.isoformat()
        executed = log.executed_ids(date_s)
        for entry in checkins:
            try:
                hour, minute = split_time(entry.time)
            except ValidationError:
                continue
            slot = _wall(day, hour, minute)
            if slot >= now or slot < start or (strict and slot == start):
                continue
            if entry.id in executed:
                continue
            out.append(MissedCheckin(date=date_s, time=entry.time, checkin_id=entry.id))
        day += timedelta(days=1)

    out.sort(key=lambda m: (m.date, m.time))
    return out


def describe_missed(missed: Sequence[MissedCheckin], now: datetime | None = None) -> str:
    """Friendly, non-judgmental summary for the prompt ("" if nothing was missed)."""
    if not missed:
        return ""

    today = (now or datetime.now()).date().isoformat()
    parts = []
    for m in missed[:6]:
        parts.append(m.time if m.date == today else f"{m.time} on {m.date}")
    more = len(missed) - len(parts)
    listed = ", ".join(parts) + (f" and {more} more" if more > 0 else "")

    noun = "check-in" if len(missed) == 1 else "check-ins"
    return (
        f"Since we last talked, {len(missed)} scheduled {noun} passed without a chat ({listed}). "
        "That's completely fine; they were probably busy. Don't mention it as a failure, "
        "just welcome them back warmly."
    )
