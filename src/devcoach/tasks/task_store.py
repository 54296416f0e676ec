# tasks/task_store.py

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..errors import FileIOError, ValidationError, validate_index
from ..storage.json_files import is_file_corrupted, read_json, write_json
from .task_models import Task, TaskStatus, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class StartResult:
    """
    Outcome of start().

    started=False means the request was rejected (e.g. the task is completed);
    nothing changed and `reason` says why.
    """

    task: Task
    started: bool
    paused: Task | None = None
    reason: str | None = None


class TaskStore:
    """
    Ordered to-do list persisted as a JSON array.

    The in-memory list is the source of truth. Every mutation is written out
    immediately; if the write fails the previous list is restored and the
    FileIOError propagates, so memory never diverges from the last good write.

    path=None keeps everything in memory (data dir unavailable).
    """

    def __init__(self, path: str | Path | None = "tasks.json") -> None:
        self._path = Path(path) if path is not None else None
        self._tasks: list[Task] = self._load()
        logger.info("TaskStore ready path=%s total=%s", self._path, len(self._tasks))

    @property
    def path(self) -> Path | None:
        return self._path

    # ---- low-level helpers ----

    def _load(self) -> list[Task]:
        if self._path is None:
            return []
        if is_file_corrupted(self._path):
            logger.warning("Tasks file %s appears to be corrupted. Starting with empty task list.", self._path)
            return []

        raw = read_json(self._path, [])
        if not isinstance(raw, list):
            logger.warning("Tasks file %s must hold a list. Starting with empty task list.", self._path)
            return []

        tasks: list[Task] = []
        for i, item in enumerate(raw, start=1):
            try:
                tasks.append(Task.from_dict(item))
            except ValueError as e:
                logger.warning("Task validation error in %s (task %d: %s). Starting with empty task list.", self._path, i, e)
                return []
        return tasks

    def _persist(self, previous: list[Task]) -> None:
        try:
            write_json(self._path, [t.to_dict() for t in self._tasks])
        except FileIOError:
            self._tasks = previous
            logger.warning("Task save failed; in-memory change reverted.")
            raise
        logger.debug("Saved %d tasks.", len(self._tasks))

    def _checkpoint(self) -> list[Task]:
        return copy.deepcopy(self._tasks)

    def _next_id(self) -> int:
        return max((t.id for t in self._tasks), default=0) + 1

    # ---- public API ----

    def all_tasks(self) -> list[Task]:
        return list(self._tasks)

    def snapshot(self) -> list[Task]:
        return self._checkpoint()

    def count(self) -> int:
        return len(self._tasks)

    def counts(self) -> dict[str, int]:
        out = {s.value: 0 for s in TaskStatus}
        for t in self._tasks:
            out[t.status.value] += 1
        return out

    def in_progress(self) -> Task | None:
        for t in self._tasks:
            if t.status == TaskStatus.IN_PROGRESS:
                return t
        return None

    def add(self, description: object, *, now: datetime | None = None) -> Task:
        if not isinstance(description, str) or not description.strip():
            raise ValidationError("Task description is required and must be a non-empty string")

        ts = utc_now_iso(now)
        task = Task(
            id=self._next_id(),
            description=description.strip(),
            status=TaskStatus.PENDING,
            created_at=ts,
            updated_at=ts,
        )

        previous = self._checkpoint()
        self._tasks.append(task)
        self._persist(previous)
        logger.info("Task added id=%s", task.id)
        return task

    def start(self, index: object, *, now: datetime | None = None) -> StartResult:
        """
        Move the task at `index` (1-based) to IN_PROGRESS.

        Any other IN_PROGRESS task goes ON_HOLD first. Completed tasks cannot
        be restarted; the request is rejected without touching the list.
        """
        pos = validate_index(index, self._tasks, "Task index")
        target = self._tasks[pos]

        if target.status == TaskStatus.COMPLETED:
            return StartResult(
                task=target,
                started=False,
                reason=f'Task "{target.description}" is already completed.',
            )

        previous = self._checkpoint()
        ts = utc_now_iso(now)

        paused: Task | None = None
        for i, t in enumerate(self._tasks):
            if i != pos and t.status == TaskStatus.IN_PROGRESS:
                t.status = TaskStatus.ON_HOLD
                t.updated_at = ts
                paused = t

        target.status = TaskStatus.IN_PROGRESS
        target.updated_at = ts
        self._persist(previous)

        logger.info("Task %s -> in-progress (paused=%s)", target.id, paused.id if paused else None)
        return StartResult(task=target, started=True, paused=paused)

    def complete(self, index: object, *, now: datetime | None = None) -> Task:
        """Completing an already completed task is a no-op."""
        pos = validate_index(index, self._tasks, "Task index")
        target = self._tasks[pos]
        if target.status == TaskStatus.COMPLETED:
            return target

        previous = self._checkpoint()
        target.status = TaskStatus.COMPLETED
        target.updated_at = utc_now_iso(now)
        self._persist(previous)

        logger.info("Task %s -> completed", target.id)
        return target

    def remove(self, index: object) -> Task:
        pos = validate_index(index, self._tasks, "Task index")

        previous = self._checkpoint()
        removed = self._tasks.pop(pos)
        self._persist(previous)

        logger.info("Task %s removed", removed.id)
        return removed

    def backup(self, now: datetime | None = None) -> Path:
        """Write a timestamped copy next to the tasks file."""
        if self._path is None:
            raise FileIOError("Tasks are kept in memory only; nothing to back up to.")
        stamp = int((now or datetime.now(UTC)).timestamp() * 1000)
        target = self._path.with_name(f"{self._path.stem}.backup.{stamp}{self._path.suffix}")
        write_json(target, [t.to_dict() for t in self._tasks])
        logger.info("Tasks backed up to %s", target)
        return target
