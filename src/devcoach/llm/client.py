# src/devcoach/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import openai
from openai import OpenAI

from ..core.coaching import COACH_SYSTEM_PROMPT, build_chat_prompt
from ..errors import ApiError, ConfigError, DevCoachError, NetworkError, ValidationError
from .offline import fallback_response

logger = logging.getLogger(__name__)

_BAD_MODELS: dict[str, float] = {}  # model -> retry_at (monotonic)


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"AuthenticationError", "PermissionDeniedError", "UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, httpx.TimeoutException, TimeoutError)):
        return True
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def _is_not_found_error(exc: Exception) -> bool:
    if isinstance(exc, openai.NotFoundError):
        return True
    return exc.__class__.__name__ in {"NotFoundError"}


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


class CoachLLMClient:
    """
    OpenAI-compatible chat completion client (Gemini's OpenAI endpoint by default).

    - One cached SDK client per API key.
    - Automatic SDK retries are off so we can fall back across models quickly.
    - Models are tried in the configured order; auth errors fail fast.
    """

    def __init__(self, settings: Any) -> None:
        self._settings = settings
        self._base_url = str(getattr(settings, "llm_base_url", "") or "").strip()
        if not self._base_url:
            raise ConfigError("LLM base URL is not set. Set DEVCOACH_LLM_BASE_URL in your .env.")
        self._models = [m.strip() for m in (getattr(settings, "llm_models", None) or []) if m and m.strip()]
        if not self._models:
            raise ConfigError("LLM model list is empty. Set DEVCOACH_LLM_MODELS in your .env.")
        self._connect_timeout = float(getattr(settings, "connect_timeout_seconds", 5.0))
        self._default_timeout = float(getattr(settings, "chat_timeout_seconds", 30.0))
        self._clients: dict[str, OpenAI] = {}

    @property
    def models(self) -> list[str]:
        return list(self._models)

    def _get_client(self, api_key: str) -> OpenAI:
        client = self._clients.get(api_key)
        if client is None:
            client = OpenAI(
                base_url=self._base_url,
                api_key=api_key,
                timeout=_make_timeout(self._connect_timeout, self._default_timeout),
                max_retries=0,
            )
            self._clients[api_key] = client
        return client

    def generate_reply(self, prompt: str, api_key: str, *, timeout: float | None = None) -> str:
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("Message must be a non-empty string")
        if not api_key or not str(api_key).strip():
            raise ValidationError("API key is required and must be a non-empty string")

        client = self._get_client(str(api_key).strip())
        read_s = float(timeout if timeout is not None else self._default_timeout)
        timeout_obj = _make_timeout(min(self._connect_timeout, read_s), read_s)

        last_error: Exception | None = None
        now = time.monotonic()

        for model in self._models:
            retry_at = _BAD_MODELS.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s (timeout=%.1fs)", model, read_s)
            t0 = time.monotonic()
            try:
                resp = client.chat.completions.create(
                    model=model,
                    messages=[
                        {"role": "system", "content": COACH_SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    timeout=timeout_obj,
                )
                content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
                if content:
                    logger.info("LLM: reply from model=%s (%.2fs)", model, time.monotonic() - t0)
                    return content
                last_error = RuntimeError(f"Model returned no content: {model}")

            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise ApiError("LLM authentication failed. Check your API key.") from e

                if _is_not_found_error(e):
                    _BAD_MODELS[model] = time.monotonic() + 3600.0  # 1 hour
                    logger.info("LLM: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

        if last_error is not None and _is_connection_error(last_error):
            raise NetworkError("LLM network/timeout error. Try again later.") from last_error
        if last_error is not None and _is_rate_limit_error(last_error):
            raise ApiError("LLM is rate-limited. Try again later.") from last_error
        raise ApiError("All LLM models failed.") from last_error


def get_ai_response(state: Any, message: str) -> str:
    """
    Free-text chat entry point used by the console.

    Never raises for API trouble: degrades to a canned coaching reply.
    """
    api_key = state.api_key()
    if not api_key:
        return "AI Coach: API key not set. Please use /config set ai_api_key YOUR_API_KEY."

    if not isinstance(message, str) or not message.strip():
        return "AI Coach: Message must be a non-empty string."

    with state.lock:
        tasks = state.task_store.snapshot()
    prompt = build_chat_prompt(message, tasks)

    timeout = float(getattr(state.settings, "chat_timeout_seconds", 30.0))
    try:
        text = state.llm.generate_reply(prompt, api_key, timeout=timeout)
    except DevCoachError as e:
        logger.warning("AI request failed (%s): %s", e.kind, e)
        return f"AI Coach: {fallback_response()}"
    return f"AI Coach: {text}"


def check_ai_connection(state: Any) -> tuple[bool, str]:
    api_key = state.api_key()
    if not api_key:
        return False, "API key not set. Use /config set ai_api_key YOUR_API_KEY."

    timeout = float(getattr(state.settings, "test_timeout_seconds", 10.0))
    try:
        reply = state.llm.generate_reply("Reply with the single word: OK", api_key, timeout=timeout)
    except DevCoachError as e:
        logger.info("AI connection test failed: %s", e)
        return False, e.user_message
    if not reply.strip():
        return False, "AI service returned an empty reply."
    return True, "AI service is reachable."


def ai_status(state: Any) -> dict[str, Any]:
    settings = state.settings
    key_source = "config" if (state.config.data.ai_api_key or "").strip() else (
        "environment" if state.api_key() else None
    )
    return {
        "api_key": "set" if key_source else "not set",
        "api_key_source": key_source or "-",
        "client": type(state.llm).__name__,
        "models": ", ".join(getattr(settings, "llm_models", []) or []),
        "base_url": getattr(settings, "llm_base_url", ""),
        "chat_timeout_seconds": getattr(settings, "chat_timeout_seconds", 30.0),
    }
