# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the session engine independent of the evaluated
language, the history backend and the configuration source.
"""

from __future__ import annotations

from typing import Any, Protocol


class Evaluator(Protocol):
    """Protocol for evaluating source text against a live scope."""

    def evaluate(self, source: str, scope: dict[str, Any], tag: str) -> Any:
        """Evaluate source with scope as its globals.

        Returns:
            The resulting value, an awaitable that settles to it, or None.

        Raises:
            Any exception raised while compiling or running the source.
        """
        ...


class HistoryStore(Protocol):
    """Protocol for persistent line history."""

    def load(self) -> list[str]:
        """Return persisted lines, newest first, blank lines excluded."""
        ...

    def save(self, lines: list[str]) -> None:
        """Persist newest-first lines, replacing any previous content."""
        ...


class ConfigModel(Protocol):
    """Protocol for configuration access."""

    @property
    def system(self) -> dict[str, Any]:
        """System configuration."""
        ...

    def get_path(self, path: str, default: Any = None) -> Any:
        """Nested lookup using a dot-separated path."""
        ...
