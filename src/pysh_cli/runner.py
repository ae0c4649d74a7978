# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Script runner.

Loads script files and evaluates them (and interactive input) inside the
session namespace:
- '#!' interpreter directive lines are stripped before evaluation
- `args` is bound for the duration of one script run only
- awaitable results are awaited before the next input is accepted; a
  script's settled value is discarded, an interactive one is shown
- shell results show their stdout; their stderr goes to the error stream
- evaluation errors are reported, never propagated to the session
"""

from __future__ import annotations

import inspect
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .commands import ShellResult
from .utils import format_error, format_result, strip_interpreter_directive

if TYPE_CHECKING:
    from .session import Session  # pragma: no cover

ARGS_NAME = "args"
INPUT_TAG = "<stdin>"


class ScriptNotFound(Exception):
    """Raised when a script path does not resolve to an existing file."""

    def __init__(self, file: str, path: Path):
        super().__init__(f"File not found: {file}")
        self.file = file
        self.path = path


@dataclass
class Script:
    path: Path
    source: str
    args: list[str] = field(default_factory=list)


def resolve_script_path(file: str | os.PathLike[str]) -> Path:
    return Path(os.path.expanduser(os.fspath(file))).resolve()


def load_script(
    file: str | os.PathLike[str], args: list[str] | None = None
) -> Script:
    """Resolve and read a script file.

    Raises:
        ScriptNotFound: if the resolved path does not exist
    """
    path = resolve_script_path(file)
    if not path.exists():
        raise ScriptNotFound(os.fspath(file), path)

    text = path.read_text(encoding="utf-8")
    return Script(
        path=path,
        source=strip_interpreter_directive(text),
        args=[str(a) for a in (args or [])],
    )


class ScriptRunner:
    """Evaluates scripts and interactive input against a session."""

    def __init__(self, session: Session):
        self.session = session

    async def run(
        self, file: str | os.PathLike[str], args: list[str] | None = None
    ) -> None:
        """Run a script file with optional positional arguments.

        Missing files and evaluation errors are reported to the session's
        error stream; the namespace never keeps a stale `args` binding.
        """
        try:
            script = load_script(file, args)
        except ScriptNotFound as e:
            self.session.report_error(str(e))
            return
        except (OSError, UnicodeDecodeError) as e:
            self.session.report_error(format_error(e))
            return

        namespace = self.session.namespace
        namespace[ARGS_NAME] = script.args
        try:
            await self._evaluate(
                script.source,
                str(script.path),
                display=str,
                show_settled=False,
            )
        finally:
            namespace.pop(ARGS_NAME, None)

    async def evaluate_input(self, source: str) -> None:
        """Evaluate one interactive entry and display its result."""
        await self._evaluate(source, INPUT_TAG, display=format_result)

    async def _evaluate(
        self,
        source: str,
        tag: str,
        display: Callable[[Any], str],
        show_settled: bool = True,
    ) -> None:
        settled = False
        try:
            result = self.session.evaluator.evaluate(
                source, self.session.namespace, tag
            )
            if inspect.isawaitable(result):
                result = await result
                settled = True
        except Exception as e:
            self.session.report_error(format_error(e))
            return

        # Failed shell primitives report their stderr
        if isinstance(result, ShellResult) and result.stderr:
            self.session.report_error(result.stderr)

        if result is None or (settled and not show_settled):
            return

        text = display(result)
        if text:
            self.session.write(text)
