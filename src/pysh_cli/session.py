# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
pysh session.

Core implementation of the interactive context:
- working directory + prompt tracking (cd override)
- command namespace assembly (primitives, overrides, helpers)
- line history recording + persistence
- single-fire termination

Important boundary:
- Session does not load YAML or resolve file locations.
- Session consumes the injected ConfigModel, HistoryStore and Evaluator.
"""

from __future__ import annotations

import os
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any

from . import config as cfg_module
from . import commands
from .evaluator import PythonEvaluator
from .history import HistoryPersistenceError
from .interfaces import ConfigModel, Evaluator, HistoryStore
from .namespace import build_namespace
from .runner import ScriptRunner
from .ui import complete


def write_crash_log(
    error: BaseException,
    raw_input: str = "",
    cwd: str = "",
) -> None:
    """Write an entry to the crash log.

    Logs unhandled exceptions or critical failures.
    Only creates the log directory when actually needed.
    Appends to crash.log (never overwrites).
    """
    try:
        crash_log_path = cfg_module.crash_log_path()

        # Create logs directory only when we need to write
        crash_log_path.parent.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().isoformat()
        lines = [f"{timestamp}"]

        if raw_input:
            lines.append(f"input={raw_input}")
        if cwd:
            lines.append(f"cwd={cwd}")

        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(
            "".join(
                traceback.format_exception(
                    type(error), error, error.__traceback__
                )
            )
        )
        lines.append("----")

        with crash_log_path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # If we can't write the crash log, fail silently
        # (we're already in an error state)
        pass


class SessionState(Enum):
    CREATED = auto()
    RUNNING = auto()
    TERMINATING = auto()
    TERMINATED = auto()


@dataclass
class Session:
    """pysh session engine."""

    config: ConfigModel
    history_store: HistoryStore
    evaluator: Evaluator = field(default_factory=PythonEvaluator)
    shell: commands.SubprocessShell | None = None

    name: str = cfg_module.DEFAULT_NAME
    current_directory: str = ""
    prompt: str = ""
    namespace: dict[str, Any] = field(default_factory=dict)

    # Newest first
    history: list[str] = field(default_factory=list)
    max_history: int = cfg_module.DEFAULT_HISTORY_MAX_LINES

    state: SessionState = SessionState.CREATED

    # ---- Output hooks (wired by UI/CLI) ----
    output_fn: Callable[[str], None] | None = None
    error_fn: Callable[[str], None] | None = None
    # Called with the new prompt after a successful cd
    prompt_fn: Callable[[str], None] | None = None
    exit_fn: Callable[[int], Any] = sys.exit

    runner: ScriptRunner = field(init=False, repr=False)

    def __post_init__(self) -> None:
        sys_cfg = getattr(self.config, "system", {}) or {}
        name = sys_cfg.get("name") if isinstance(sys_cfg, dict) else None
        if isinstance(name, str) and name.strip():
            self.name = name.strip()

        self.max_history = cfg_module.history_max_lines(self.config)
        self.runner = ScriptRunner(self)

    @property
    def running(self) -> bool:
        return self.state is SessionState.RUNNING

    # -----------------------
    # Output
    # -----------------------

    def write(self, text: str) -> None:
        if self.output_fn is not None:
            self.output_fn(text)
        else:
            print(text)

    def report_error(self, text: str) -> None:
        if self.error_fn is not None:
            self.error_fn(text)
        else:
            print(text, file=sys.stderr)

    # -----------------------
    # Session
    # -----------------------

    def start(self) -> Session:
        """Start a pysh session.

        The interactive read loop itself is driven by cli.run_repl().
        """
        if self.state is not SessionState.CREATED:
            return self

        self.current_directory = os.getcwd()
        self.namespace = self.build_namespace()
        self.prompt = self.make_prompt()

        try:
            self.history[:0] = self.history_store.load()
        except HistoryPersistenceError as e:
            self.report_error(str(e))

        self.state = SessionState.RUNNING
        return self

    def build_namespace(self) -> dict[str, Any]:
        overrides = {"cd": self.change_directory}
        helpers = {
            "run": self.run,
            "pwdl": self.pwdl,
            "lsl": self.lsl,
            "exit": self.terminate,
        }
        return build_namespace(
            commands.build_primitives(self.shell), overrides, helpers
        )

    def make_prompt(self) -> str:
        return f"{self.name}:{self.current_directory} > "

    # -----------------------
    # Helpers exposed in the namespace
    # -----------------------

    def change_directory(self, target: str = "~") -> None:
        """cd override: keeps the prompt in sync with the working directory."""
        result = commands.cd(target)
        if not result.ok:
            self.report_error(result.stderr)
            return

        self.current_directory = commands.pwd().stdout
        self.prompt = self.make_prompt()
        if self.prompt_fn is not None:
            self.prompt_fn(self.prompt)

    async def run(self, file: str, args: list[str] | None = None) -> None:
        await self.runner.run(file, args)

    def pwdl(self) -> None:
        self.write(commands.pwd().stdout)

    def lsl(self) -> None:
        result = commands.ls()
        if not result.ok:
            self.report_error(result.stderr)
            return
        self.write(result.stdout)

    def terminate(self, code: int = 0) -> None:
        """Persist history and end the process.

        Reachable from the `exit` helper and from the front end's exit
        signal; only the first call has any effect.
        """
        if self.state in (SessionState.TERMINATING, SessionState.TERMINATED):
            return
        self.state = SessionState.TERMINATING

        try:
            del self.history[self.max_history:]
            self.history_store.save(self.history)
        except HistoryPersistenceError as e:
            self.report_error(str(e))
        finally:
            self.state = SessionState.TERMINATED

        self.exit_fn(code)

    # -----------------------
    # Input handling
    # -----------------------

    def record(self, source: str) -> None:
        """Prepend each non-blank physical line of an entry to history."""
        for line in source.split("\n"):
            if line.strip():
                self.history.insert(0, line)

    async def handle_line(self, source: str) -> None:
        """Record and evaluate one interactive entry."""
        self.record(source)
        await self.runner.evaluate_input(source)

    def complete(self, partial: str) -> tuple[list[str], str]:
        return complete(partial, self)
