# src/devcoach/storage/json_files.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..errors import FileIOError

logger = logging.getLogger(__name__)


def is_file_corrupted(path: str | Path) -> bool:
    """An empty or unparseable file is corrupted; a missing one is not."""
    path = Path(path)
    try:
        raw = path.read_text("utf-8")
    except FileNotFoundError:
        return False
    except OSError:
        return True
    if not raw.strip():
        return True
    try:
        json.loads(raw)
    except ValueError:
        return True
    return False


def read_json(path: str | Path | None, default: Any) -> Any:
    """
    Best-effort JSON read.

    Missing, empty or invalid files yield `default`; path=None (in-memory mode)
    always yields `default`.
    """
    if path is None:
        return default
    path = Path(path)
    try:
        raw = path.read_text("utf-8")
    except FileNotFoundError:
        return default
    except OSError as e:
        logger.warning("Failed to read %s: %s", path, e)
        return default

    if not raw.strip():
        logger.warning("%s is empty; using defaults.", path)
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning("%s is not valid JSON (%s); using defaults.", path, e)
        return default


def write_json(path: str | Path | None, data: Any) -> None:
    """
    Pretty-printed atomic write (tmp file + os.replace).

    Raises FileIOError; path=None is a no-op.
    """
    if path is None:
        return
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)
    except (OSError, TypeError, ValueError) as e:
        logger.error("Failed to write %s: %s", path, e)
        raise FileIOError(f"Writing to {path} failed: {e}") from e

    with contextlib.suppress(OSError):
        # Config holds the API key; keep every data file private.
        os.chmod(path, 0o600)
    logger.debug("Wrote %s", path)
