# tests/test_json_files.py

from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from devcoach.errors import FileIOError
from devcoach.storage.json_files import is_file_corrupted, read_json, write_json


def test_read_missing_empty_and_invalid(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    assert read_json(path, []) == []
    assert not is_file_corrupted(path)

    path.write_text("", "utf-8")
    assert read_json(path, {"d": 1}) == {"d": 1}
    assert is_file_corrupted(path)

    path.write_text("{oops", "utf-8")
    assert read_json(path, None) is None
    assert is_file_corrupted(path)


def test_write_is_pretty_and_private(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "data.json"
    write_json(path, {"b": [1, 2], "a": "ü"})

    text = path.read_text("utf-8")
    assert json.loads(text) == {"b": [1, 2], "a": "ü"}
    assert "\n  " in text
    assert not path.with_suffix(".json.tmp").exists()
    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_write_failure_raises_file_io_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", "utf-8")
    with pytest.raises(FileIOError):
        write_json(blocker / "data.json", [1])


def test_none_path_is_in_memory() -> None:
    assert read_json(None, "default") == "default"
    write_json(None, {"ignored": True})
