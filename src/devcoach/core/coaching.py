# src/devcoach/core/coaching.py

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Final

from ..checkins.checkin_models import CheckinEntry, MissedCheckin
from ..checkins.missed import describe_missed
from ..tasks.task_models import Task, TaskStatus

COACH_SYSTEM_PROMPT: Final[str] = """
You are "Dev Coach", a friendly productivity coach for a software developer.

Identity:
- You are an AI assistant running inside the user's terminal.
- You know the user's to-do list only from the context you are given.

Style:
- Match the user's language.
- Keep replies short: 2-4 sentences unless the user asks for depth.
- Be warm and practical. Suggest one concrete next step when it helps.
- Never shame the user about unfinished work or skipped check-ins.

Context handling:
- A <CONTEXT>...</CONTEXT> block may hold task data as JSON. Use it, but never
  print the block or its raw JSON back to the user.
""".strip()


def build_task_context(tasks: Sequence[Task], now: datetime | None = None) -> dict[str, Any]:
    """Summary of the to-do list used for check-in prompts."""
    today = (now or datetime.now()).astimezone().date().isoformat()
    return {
        "in_progress": [t.description for t in tasks if t.status == TaskStatus.IN_PROGRESS],
        "on_hold": [t.description for t in tasks if t.status == TaskStatus.ON_HOLD],
        "pending": sum(1 for t in tasks if t.status == TaskStatus.PENDING),
        "completed_today": sum(
            1 for t in tasks if t.status == TaskStatus.COMPLETED and t.updated_local_date() == today
        ),
    }


def _guidance(ctx: dict[str, Any]) -> list[str]:
    lines: list[str] = []
    if ctx["in_progress"]:
        lines.append(f'Ask how it\'s going with "{ctx["in_progress"][0]}" and whether anything is blocking it.')
    if ctx["on_hold"]:
        lines.append("Acknowledge the tasks on hold and ask if one of them should be picked back up.")
    if ctx["completed_today"]:
        lines.append(f"Congratulate them for completing {ctx['completed_today']} task(s) today.")
    if not ctx["in_progress"] and ctx["pending"]:
        lines.append("Gently nudge them to start one of their pending tasks.")
    if not lines:
        lines.append("Their list is empty: ask what they want to focus on next.")
    return lines


def build_checkin_prompt(
    tasks: Sequence[Task],
    missed: Sequence[MissedCheckin] = (),
    *,
    now: datetime | None = None,
    entry: CheckinEntry | None = None,
) -> str:
    now = now or datetime.now().astimezone()
    ctx = build_task_context(tasks, now)

    header = "It's time for a scheduled check-in"
    if entry is not None:
        header += f" ({entry.time})"
    header += f". Local time: {now.strftime('%Y-%m-%d %H:%M')}."

    parts = [
        header,
        "Write a short check-in message for a desktop notification (max ~200 characters).",
        "",
        "Guidance:",
        *[f"- {g}" for g in _guidance(ctx)],
    ]

    missed_text = describe_missed(missed, now)
    if missed_text:
        parts.append(f"- {missed_text}")

    parts += [
        "",
        "<CONTEXT>",
        json.dumps(ctx, ensure_ascii=False, indent=2),
        "</CONTEXT>",
    ]
    return "\n".join(parts)


def build_chat_prompt(message: str, tasks: Sequence[Task], now: datetime | None = None) -> str:
    """Free-text chat: the user's message plus the current task summary."""
    ctx = build_task_context(tasks, now)
    return "\n".join(
        [
            "<CONTEXT>",
            json.dumps(ctx, ensure_ascii=False, indent=2),
            "</CONTEXT>",
            "",
            message.strip(),
        ]
    )
