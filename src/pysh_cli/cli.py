# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
pysh CLI entry point and REPL loop.

Design:
- CLI owns process startup, --version and script-mode dispatch.
- Session is the engine (config + history store + evaluator injected).
- UI is terminal-friendly PromptSession (keeps scrollback + copy/select);
  a plain input() loop is used when stdin is not a terminal.
"""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import Callable

from . import __version__, config
from .commands import SubprocessShell
from .history import HistoryFile
from .session import Session, write_crash_log
from .ui import PromptToolkitUI
from .utils import format_error, is_source_incomplete

CONTINUATION_PROMPT = "... "

# Under asyncio.run, Ctrl+C can also arrive as main-task cancellation
READ_INTERRUPTS = (KeyboardInterrupt, EOFError, asyncio.CancelledError)


async def _read_line(
    prompt: str,
    ui: PromptToolkitUI | None,
    input_fn: Callable[[str], str],
) -> str:
    if ui is not None:
        return await ui.read(prompt)
    line = input_fn(prompt)
    # A Ctrl+C during a blocking input() is delivered by asyncio.run as
    # cancellation of the main task; yield so it surfaces here
    await asyncio.sleep(0)
    return line


def _clear_cancellation(error: BaseException) -> None:
    """Consume a Ctrl+C cancellation so the loop can shut down cleanly."""
    if isinstance(error, asyncio.CancelledError):
        task = asyncio.current_task()
        if task is not None:
            task.uncancel()


async def run_repl(
    session: Session,
    ui: PromptToolkitUI | None = None,
    input_fn: Callable[[str], str] = input,
) -> None:
    """Run the interactive pysh loop until the session terminates."""
    while session.running:
        try:
            source = await _read_line(session.prompt, ui, input_fn)
            if not (source or "").strip():
                continue

            # Open blocks, brackets and strings continue on the next line
            while is_source_incomplete(source):
                try:
                    continuation = await _read_line(
                        CONTINUATION_PROMPT, ui, input_fn
                    )
                except READ_INTERRUPTS as e:
                    _clear_cancellation(e)
                    session.write("\n[Cancelled]")
                    source = ""
                    break
                source = source + "\n" + (continuation or "")

            if not source:
                continue

            try:
                await session.handle_line(source)
            except Exception as e:
                # Unhandled exception - write crash log
                write_crash_log(
                    e, raw_input=source, cwd=session.current_directory
                )
                session.report_error(
                    f"[ERROR] Unhandled exception: "
                    f"{type(e).__name__}: {e}"
                )
                # Continue session

        except READ_INTERRUPTS as e:
            _clear_cancellation(e)
            session.terminate()

    session.terminate()


def build_session(cfg: config.YAMLConfig | None = None) -> Session:
    """Wire config, history store and shell runner into a Session."""
    if cfg is None:
        cfg = config.load_system_config()

    shell = SubprocessShell(
        force_color=bool(cfg.get_path("execution.force_color", True)),
        timeout=int(cfg.get_path("execution.timeout", 30)),
    )
    store = HistoryFile(
        config.history_path(cfg), max_lines=config.history_max_lines(cfg)
    )
    return Session(config=cfg, history_store=store, shell=shell)


async def run_script(session: Session, script: str, args: list[str]) -> None:
    """Run one script non-interactively, then terminate the session."""
    code = 0
    try:
        await session.run(script, args)
    except Exception as e:
        write_crash_log(
            e,
            raw_input=" ".join([script, *args]),
            cwd=session.current_directory,
        )
        session.report_error(format_error(e))
        code = 1
    session.terminate(code)


async def _amain(argv: list[str]) -> None:
    session = build_session().start()

    if argv:
        await run_script(session, argv[0], argv[1:])
        return

    ui = None
    if sys.stdin.isatty() and os.environ.get("PYSH_LEGACY_UI") != "1":
        ui = PromptToolkitUI(session)
        # Route result output through the UI so it plays well with the prompt
        session.output_fn = ui.write
        session.prompt_fn = ui.refresh_prompt

    await run_repl(session, ui=ui)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for pysh."""
    args = list(sys.argv[1:] if argv is None else argv)

    if "--version" in args:
        print(__version__)
        sys.exit(0)

    try:
        asyncio.run(_amain(args))
    except Exception as e:
        write_crash_log(e, raw_input=" ".join(args), cwd=os.getcwd())
        print(
            f"[ERROR] Unhandled exception: {type(e).__name__}: {e}",
            file=sys.stderr,
        )
        sys.exit(1)
