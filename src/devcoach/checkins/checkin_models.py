# checkins/checkin_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from ..core.timeparse import is_canonical_time


@dataclass(slots=True, frozen=True)
class CheckinEntry:
    """A recurring daily check-in. `id` is stable across reschedules."""

    time: str
    id: str

    @classmethod
    def create(cls, time: str) -> CheckinEntry:
        return cls(time=time, id=str(uuid.uuid4()))

    def to_dict(self) -> dict[str, str]:
        return {"time": self.time, "id": self.id}

    @classmethod
    def from_dict(cls, raw: Any) -> CheckinEntry:
        if not isinstance(raw, dict):
            raise ValueError("check-in must be an object")
        t = raw.get("time")
        i = raw.get("id")
        if not isinstance(t, str) or not t:
            raise ValueError("check-in must have a 'time' property (string)")
        if not isinstance(i, str) or not i:
            raise ValueError("check-in must have an 'id' property (string)")
        return cls(time=t, id=i)

    @property
    def is_valid(self) -> bool:
        return is_canonical_time(self.time)


@dataclass(slots=True, frozen=True)
class ExecutedCheckin:
    scheduled_time_id: str
    actual_timestamp: str

    def to_dict(self) -> dict[str, str]:
        return {"scheduled_time_id": self.scheduled_time_id, "actual_timestamp": self.actual_timestamp}


@dataclass(slots=True)
class DailyCheckinLogEntry:
    date: str
    executed_checkins: list[ExecutedCheckin] = field(default_factory=list)

    def has(self, scheduled_time_id: str) -> bool:
        return any(e.scheduled_time_id == scheduled_time_id for e in self.executed_checkins)

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "executed_checkins": [e.to_dict() for e in self.executed_checkins]}

    @classmethod
    def from_dict(cls, raw: Any) -> DailyCheckinLogEntry:
        if not isinstance(raw, dict):
            raise ValueError("log entry must be an object")
        date = raw.get("date")
        executed = raw.get("executed_checkins")
        if not isinstance(date, str) or not date:
            raise ValueError("log entry must have a valid date")
        if not isinstance(executed, list):
            raise ValueError("executed_checkins must be an array")

        items: list[ExecutedCheckin] = []
        for e in executed:
            if not isinstance(e, dict):
                raise ValueError("executed check-in must be an object")
            sid = e.get("scheduled_time_id")
            ts = e.get("actual_timestamp")
            if not isinstance(sid, str) or not sid:
                raise ValueError("executed check-in must have a valid scheduled_time_id")
            if not isinstance(ts, str) or not ts:
                raise ValueError("executed check-in must have a valid actual_timestamp")
            items.append(ExecutedCheckin(scheduled_time_id=sid, actual_timestamp=ts))
        return cls(date=date, executed_checkins=items)


@dataclass(slots=True, frozen=True)
class MissedCheckin:
    date: str
    time: str
    checkin_id: str
