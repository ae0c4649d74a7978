# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
File-backed line history for pysh.

On disk the history is plain text, one entry per row, oldest first.
In memory it is newest first, matching the order the session records in.
"""

from __future__ import annotations

from pathlib import Path


class HistoryPersistenceError(Exception):
    """Raised when the history file cannot be read or written."""


class HistoryFile:
    """Plain-text implementation of HistoryStore protocol."""

    def __init__(self, path: Path, max_lines: int | None = None):
        """Initialize store with a history file path.

        Args:
            path: Location of the history file (may not exist yet)
            max_lines: Retention cap applied on save (None = unbounded)
        """
        self.path = path
        self.max_lines = max_lines

    def load(self) -> list[str]:
        """Return persisted lines newest first, blank lines excluded.

        A missing file is an empty history, not an error.
        """
        if not self.path.exists():
            return []
        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise HistoryPersistenceError(
                f"Error loading history from {self.path}: {e}"
            ) from e

        lines = content.split("\n")
        lines.reverse()
        return [line for line in lines if line.strip()]

    def save(self, lines: list[str]) -> None:
        """Write newest-first lines to disk oldest first (overwrite)."""
        kept = [line for line in lines if line.strip()]
        if self.max_lines is not None:
            del kept[self.max_lines:]
        kept.reverse()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("\n".join(kept), encoding="utf-8")
        except OSError as e:
            raise HistoryPersistenceError(
                f"Error saving history to {self.path}: {e}"
            ) from e
