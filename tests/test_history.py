"""
Tests for the file-backed HistoryStore implementation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from pysh_cli.history import HistoryFile, HistoryPersistenceError


@pytest.fixture
def history_file(tmp_path: Path) -> Path:
    return tmp_path / ".pysh_history"


def test_load_missing_file_is_empty_history(history_file: Path):
    assert HistoryFile(history_file).load() == []


def test_load_reverses_to_newest_first_and_drops_blanks(history_file: Path):
    history_file.write_text("first\n\n   \nsecond\nthird\n", encoding="utf-8")

    assert HistoryFile(history_file).load() == ["third", "second", "first"]


def test_save_writes_oldest_first(history_file: Path):
    HistoryFile(history_file).save(["newest", "middle", "oldest"])

    assert history_file.read_text(encoding="utf-8") == "oldest\nmiddle\nnewest"


def test_save_overwrites_previous_content(history_file: Path):
    history_file.write_text("stale\nlines\n", encoding="utf-8")

    HistoryFile(history_file).save(["fresh"])

    assert history_file.read_text(encoding="utf-8") == "fresh"


def test_round_trip_keeps_order_and_excludes_blanks(history_file: Path):
    store = HistoryFile(history_file)
    # Newest first, as held in memory
    lines = ["pwdl()", "", "x = 1", "   ", "cd('/tmp')"]

    store.save(lines)

    assert store.load() == ["pwdl()", "x = 1", "cd('/tmp')"]
    on_disk = history_file.read_text(encoding="utf-8").split("\n")
    assert on_disk == ["cd('/tmp')", "x = 1", "pwdl()"]


def test_save_applies_retention_cap_keeping_newest(history_file: Path):
    store = HistoryFile(history_file, max_lines=2)

    store.save(["c", "b", "a"])

    assert store.load() == ["c", "b"]


def test_save_creates_parent_directory(tmp_path: Path):
    path = tmp_path / "nested" / "dir" / "history"

    HistoryFile(path).save(["x"])

    assert path.read_text(encoding="utf-8") == "x"


def test_save_failure_raises_persistence_error(tmp_path: Path):
    # A directory where the file should be makes the write fail
    path = tmp_path / "history"
    path.mkdir()

    with pytest.raises(HistoryPersistenceError):
        HistoryFile(path).save(["x"])


def test_load_failure_raises_persistence_error(tmp_path: Path):
    path = tmp_path / "history"
    path.mkdir()

    with pytest.raises(HistoryPersistenceError):
        HistoryFile(path).load()
