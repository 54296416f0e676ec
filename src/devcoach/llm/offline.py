# src/devcoach/llm/offline.py

from __future__ import annotations

import random
from typing import Final

FALLBACK_RESPONSES: Final[tuple[str, ...]] = (
    "I'm having trouble reaching my brain in the cloud right now. What's the one thing you want to finish next?",
    "Connection hiccup on my side. Meanwhile: pick your smallest open task and give it 25 focused minutes.",
    "I can't reach the AI service at the moment. How about a quick look at /todo list to choose your next step?",
    "Looks like I'm offline. Take a short break, stretch, and come back to your current task refreshed.",
    "No connection right now, but you're doing fine. Break the next task into a step you can finish in 10 minutes.",
    "I'm temporarily unavailable. Try writing down what's blocking you; it often makes the next step obvious.",
)


def fallback_response() -> str:
    return random.choice(FALLBACK_RESPONSES)


class OfflineLLMClient:
    """
    Offline client used when the real one cannot be built (bad settings).

    Always answers with a canned coaching line, no external calls.
    """

    def generate_reply(self, prompt: str, api_key: str, *, timeout: float | None = None) -> str:
        return fallback_response()
