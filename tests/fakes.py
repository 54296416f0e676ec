# tests/fakes.py

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from devcoach.errors import NetworkError


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Returns a predefined text
    """

    def __init__(self, next_text: str = "ok") -> None:
        self.next_text = next_text
        self.calls: list[tuple[str, str, float | None]] = []

    def generate_reply(self, prompt: str, api_key: str, *, timeout: float | None = None) -> str:
        self.calls.append((prompt, api_key, timeout))
        return self.next_text


class FailingLLMClient:
    """Always fails the way an unreachable endpoint does."""

    def __init__(self) -> None:
        self.calls = 0

    def generate_reply(self, prompt: str, api_key: str, *, timeout: float | None = None) -> str:
        self.calls += 1
        raise NetworkError("LLM network/timeout error. Try again later.")


@dataclass(slots=True)
class SentNotification:
    title: str
    message: str
    sound: bool
    wait: bool


@dataclass(slots=True)
class FakeNotifier:
    sent: list[SentNotification] = field(default_factory=list)

    def notify(self, title: str, message: str, *, sound: bool = True, wait: bool = False) -> None:
        self.sent.append(SentNotification(title=title, message=message, sound=sound, wait=wait))


class FakeScheduler:
    """
    In-memory trigger map used by registry and command tests.

    fail=True makes reschedule_all raise, the way a dead event loop would.
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.scheduled: dict[str, str] = {}
        self.reschedules = 0

    def reschedule_all(self, checkins: Sequence) -> int:
        self.reschedules += 1
        self.scheduled.clear()
        if self.fail:
            raise RuntimeError("event loop is closed")
        for c in checkins:
            if c.is_valid:
                self.scheduled[c.id] = c.time
        return len(self.scheduled)

    def cancel_all(self) -> None:
        self.scheduled.clear()

    def is_scheduled(self, checkin_id: str) -> bool:
        return checkin_id in self.scheduled

    def jobs(self) -> list:
        return []
