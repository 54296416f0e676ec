# src/devcoach/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- User-editable preferences (check-ins, API key, ...) live in config.json,
  see storage/config_store.py; this module only covers process settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "DEVCOACH"

DEFAULT_LLM_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_LLM_MODELS = ["gemini-2.5-flash", "gemini-2.0-flash"]


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    config_path: Path
    tasks_path: Path
    checkin_log_path: Path
    history_path: Path

    # ---- LLM (OpenAI-compatible endpoint) ----
    ai_api_key: str | None
    llm_base_url: str
    llm_models: list[str]
    chat_timeout_seconds: float
    test_timeout_seconds: float
    connect_timeout_seconds: float

    # ---- Check-ins ----
    notifications_enabled: bool
    missed_lookback_days: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "devcoach") or "devcoach"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path.home() / ".devcoach")
        config_path = _env_path(_k("CONFIG_PATH"), data_dir / "config.json")
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")
        checkin_log_path = _env_path(_k("CHECKIN_LOG_PATH"), data_dir / "daily_checkins.json")
        history_path = _env_path(_k("HISTORY_PATH"), data_dir / "history.json")

        ai_api_key = _first_env(_k("AI_API_KEY"), "GEMINI_API_KEY", default=None)
        llm_base_url = _env(_k("LLM_BASE_URL"), DEFAULT_LLM_BASE_URL)
        llm_models = _env_list(_k("LLM_MODELS"), DEFAULT_LLM_MODELS)

        chat_timeout_seconds = _env_float(_k("CHAT_TIMEOUT_SECONDS"), 30.0)
        test_timeout_seconds = _env_float(_k("TEST_TIMEOUT_SECONDS"), 10.0)
        connect_timeout_seconds = _env_float(_k("CONNECT_TIMEOUT_SECONDS"), 5.0)

        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)
        missed_lookback_days = max(1, _env_int(_k("MISSED_LOOKBACK_DAYS"), 7))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            config_path=config_path,
            tasks_path=tasks_path,
            checkin_log_path=checkin_log_path,
            history_path=history_path,
            ai_api_key=ai_api_key,
            llm_base_url=llm_base_url,
            llm_models=llm_models,
            chat_timeout_seconds=chat_timeout_seconds,
            test_timeout_seconds=test_timeout_seconds,
            connect_timeout_seconds=connect_timeout_seconds,
            notifications_enabled=notifications_enabled,
            missed_lookback_days=missed_lookback_days,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
