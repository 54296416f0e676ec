# src/devcoach/errors.py

"""
Error kinds and the exception hierarchy shared by every layer.

Policy:
- validation errors are recovered locally and shown to the user, state untouched;
- file/API errors during a write roll back the attempted in-memory mutation;
- scheduler callbacks catch everything and only log.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    FILE_IO = "FILE_IO"
    API_ERROR = "API_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


_USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.FILE_IO: "Unable to save or load data. Please check file permissions.",
    ErrorKind.API_ERROR: "Unable to connect to AI service. Please check your API key and internet connection.",
    ErrorKind.CONFIG_ERROR: "Configuration error. Please check your settings.",
    ErrorKind.NETWORK_ERROR: "Network connection issue. Please check your internet connection.",
    ErrorKind.UNKNOWN: "An unexpected error occurred. Please try again.",
}


class DevCoachError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN

    @property
    def user_message(self) -> str:
        if self.kind == ErrorKind.VALIDATION_ERROR:
            return f"Invalid input: {self}"
        return _USER_MESSAGES.get(self.kind, _USER_MESSAGES[ErrorKind.UNKNOWN])


class ValidationError(DevCoachError):
    kind = ErrorKind.VALIDATION_ERROR


class FileIOError(DevCoachError):
    kind = ErrorKind.FILE_IO


class ConfigError(DevCoachError):
    kind = ErrorKind.CONFIG_ERROR


class ApiError(DevCoachError):
    kind = ErrorKind.API_ERROR


class NetworkError(DevCoachError):
    kind = ErrorKind.NETWORK_ERROR


class SchedulingError(DevCoachError):
    """Triggers could not be (re)built; the caller rolls back its change."""


def friendly_error_message(err: BaseException) -> str:
    if isinstance(err, DevCoachError):
        return err.user_message
    return _USER_MESSAGES[ErrorKind.UNKNOWN]


def validate_index(raw: Any, items: Sequence[Any], field: str = "Index") -> int:
    """Convert a 1-based user index into a list offset."""
    try:
        if isinstance(raw, bool):
            raise ValueError(raw)
        if isinstance(raw, str):
            raw = raw.strip()
        num = int(raw)
        if isinstance(raw, float) and raw != num:
            raise ValueError(raw)
    except (TypeError, ValueError):
        num = 0

    if num < 1 or num > len(items):
        raise ValidationError(f"{field} must be between 1 and {len(items)}")
    return num - 1
