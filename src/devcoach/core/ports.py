# src/devcoach/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the LLM provider / notifier / scheduler swappable and makes testing easier.
"""

from collections.abc import Callable, Sequence
from typing import Any, Protocol

Emitter = Callable[[str], None]
# Console-side sink for user-visible lines (scheduler echoes, progress notes).


class LLMClient(Protocol):
    """Text generation capability: one prompt in, one reply out."""

    def generate_reply(self, prompt: str, api_key: str, *, timeout: float | None = None) -> str: ...


class Notifier(Protocol):
    """Desktop notification sink. Fire-and-forget: must not raise."""

    def notify(self, title: str, message: str, *, sound: bool = True, wait: bool = False) -> None: ...


class CheckinTriggers(Protocol):
    """What the check-in registry needs from the scheduler."""

    def reschedule_all(self, checkins: Sequence[Any]) -> int: ...
    def cancel_all(self) -> None: ...
    def is_scheduled(self, checkin_id: str) -> bool: ...
    def jobs(self) -> list[Any]: ...
