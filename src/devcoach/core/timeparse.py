# src/devcoach/core/timeparse.py

"""
Time-of-day parsing for check-ins.

Accepted input:
- strict 24h "HH:MM" (zero-padded) -> returned unchanged
- a relative interval "2h", "30m", "1h 30m" -> now + interval, as "HH:MM"
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from datetime import time as dt_time

from ..errors import ValidationError

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
INTERVAL_RE = re.compile(r"^(?:(\d+)\s*h)?\s*(?:(\d+)\s*m)?$", re.IGNORECASE)

USAGE = "Usage: <HH:MM> or <interval> (e.g., 14:30, 30m, 2h, 1h 30m)"


def is_canonical_time(text: object) -> bool:
    return isinstance(text, str) and TIME_RE.match(text) is not None


def split_time(text: str) -> tuple[int, int]:
    m = TIME_RE.match(text or "")
    if m is None:
        raise ValidationError(f"Time must be in HH:MM format (e.g., 14:30), got {text!r}")
    return int(m.group(1)), int(m.group(2))


def parse_time_input(text: object, now: datetime | None = None) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(f"Time input must be a non-empty string. {USAGE}")

    text = text.strip()
    if TIME_RE.match(text):
        return text

    m = INTERVAL_RE.match(text)
    if m is None or (m.group(1) is None and m.group(2) is None):
        raise ValidationError(USAGE)

    hours = int(m.group(1) or 0)
    minutes = int(m.group(2) or 0)

    if hours == 0 and minutes == 0:
        raise ValidationError("Invalid interval. Use formats like 30m, 2h, or 1h 30m.")
    if hours > 24:
        raise ValidationError("Invalid interval: hours must be at most 24.")
    if minutes > 59:
        raise ValidationError("Invalid interval: minutes must be at most 59.")

    base = now or datetime.now()
    target = base + timedelta(hours=hours, minutes=minutes)
    return f"{target.hour:02d}:{target.minute:02d}"


def next_occurrence(time_text: str, now: datetime) -> datetime:
    """
    Next daily HH:MM:00 strictly after `now`.

    The target is built as a wall-clock time and only then given the local
    offset, so it stays at HH:MM on days where the UTC offset changes.
    Naive `now` yields a naive result.
    """
    hour, minute = split_time(time_text)
    aware = now.tzinfo is not None
    base = now.astimezone() if aware else now
    for days in range(3):
        target = datetime.combine(base.date() + timedelta(days=days), dt_time(hour, minute))
        if aware:
            target = target.astimezone()
        if target > now:
            return target
    raise ValidationError(f"No upcoming occurrence of {time_text!r}")


def seconds_until(time_text: str, now: datetime) -> float:
    """Delay until the next daily occurrence of HH:MM:00 (strictly in the future)."""
    return (next_occurrence(time_text, now) - now).total_seconds()
