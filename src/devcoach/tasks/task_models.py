# tasks/task_models.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


def utc_now_iso(now: datetime | None = None) -> str:
    return (now or datetime.now(UTC)).astimezone(UTC).isoformat()


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - at most one task is IN_PROGRESS at a time; starting another one moves
      the current task to ON_HOLD.
    - older files wrote "in progress" / "in_progress"; both load as IN_PROGRESS.
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskStatus | None:
        if not raw or not isinstance(raw, str):
            return None
        key = raw.strip().lower().replace(" ", "-").replace("_", "-")
        try:
            return cls(key)
        except ValueError:
            return None


@dataclass(slots=True)
class Task:
    id: int
    description: str
    status: TaskStatus
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status.value
        return d

    @classmethod
    def from_dict(cls, raw: Any) -> Task:
        """Raises ValueError for records that cannot be a task."""
        if not isinstance(raw, dict):
            raise ValueError("task must be an object")

        desc = raw.get("description")
        if not isinstance(desc, str) or not desc.strip():
            raise ValueError("description is required and must be a non-empty string")

        status = TaskStatus.from_raw(raw.get("status"))
        if status is None:
            raise ValueError(f"unknown status {raw.get('status')!r}")

        try:
            task_id = int(raw["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError("id must be an integer") from e

        created = raw.get("created_at") or utc_now_iso()
        updated = raw.get("updated_at") or created
        return cls(
            id=task_id,
            description=desc.strip(),
            status=status,
            created_at=str(created),
            updated_at=str(updated),
        )

    def updated_local_date(self) -> str | None:
        try:
            return datetime.fromisoformat(self.updated_at).astimezone().date().isoformat()
        except ValueError:
            return None
