# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.history import History
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import print_formatted_text
from prompt_toolkit.styles import Style

from .namespace import public_names

if TYPE_CHECKING:
    from .session import Session  # pragma: no cover


# ----------------------------
# Completion
# ----------------------------


def _list_dir(directory: str) -> list[str]:
    try:
        return sorted(os.listdir(directory))
    except OSError:
        return []


def complete(partial: str, session: Session) -> tuple[list[str], str]:
    """Propose completions for partial input.

    Pool = namespace names + entries of the session's current directory
    (read on every call). Case-sensitive prefix match; when nothing
    matches the whole pool is returned instead of an empty list.

    Returns:
        (candidates, partial)
    """
    pool = public_names(session.namespace)
    pool.extend(_list_dir(session.current_directory))

    hits = [c for c in pool if c.startswith(partial)]
    return (hits if hits else pool, partial)


_WORD_BEFORE_CURSOR = re.compile(r"[\w.\-~/]*$")


class SessionCompleter(Completer):
    """prompt_toolkit adapter around complete() for the word at the cursor."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_completions(
        self, document, complete_event
    ) -> Iterable[Completion]:
        before = document.text_before_cursor or ""
        match = _WORD_BEFORE_CURSOR.search(before)
        word = match.group(0) if match else ""

        candidates, _partial = complete(word, self.session)
        seen: set[str] = set()
        for candidate in candidates:
            if candidate in seen:
                continue
            seen.add(candidate)
            meta = "" if candidate in self.session.namespace else "path"
            yield Completion(
                candidate, start_position=-len(word), display_meta=meta
            )


# ----------------------------
# Line history bridge
# ----------------------------


class SessionHistory(History):
    """Serves the session's in-memory history to prompt_toolkit.

    The session records and persists lines itself, so nothing is stored
    here.
    """

    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session

    def load_history_strings(self) -> Iterable[str]:
        # Newest first, as prompt_toolkit expects
        yield from list(self.session.history)

    def store_string(self, string: str) -> None:
        pass


# ----------------------------
# Theme / Style
# ----------------------------


def _default_style_dict() -> dict[str, str]:
    return {
        "completion-menu": "bg:#111111 #d0d0d0",
        "completion-menu.completion": "bg:#111111 #d0d0d0",
        "completion-menu.completion.current": "bg:#303030 #ffffff bold",
        "completion-menu.meta.completion": "bg:#111111 #808080",
        "completion-menu.meta.completion.current": "bg:#303030 #a0a0a0",
        "scrollbar.background": "bg:#202020",
        "scrollbar.button": "bg:#505050",
    }


def _build_style(session: Session | None) -> Style:
    base = _default_style_dict()
    overrides = {}
    if session is not None:
        overrides = session.config.get_path("ui.theme.style", {})
    if isinstance(overrides, dict):
        # only keep string->string
        for k, v in overrides.items():
            if isinstance(k, str) and isinstance(v, str):
                base[k] = v
    return Style.from_dict(base)


# ----------------------------
# PromptSession UI
# ----------------------------


class PromptToolkitUI:
    """
    Terminal-friendly line editor:
      - Keeps normal terminal scrollback + drag-select copy.
      - Completes namespace names and current-directory entries.
      - Up/down history comes from the session history.
      - Prompt is re-rendered when the session changes directory.
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session = session
        self.prompt_session: PromptSession[str] | None = None
        self._style = _build_style(session)
        self._prompt = ""

    def _ensure_session(self) -> None:
        if self.prompt_session is not None:
            return

        completer = None
        history = None
        complete_while_typing = False
        if self.session is not None:
            completer = SessionCompleter(self.session)
            history = SessionHistory(self.session)
            complete_while_typing = bool(
                self.session.config.get_path(
                    "ui.complete_while_typing", False
                )
            )

        self.prompt_session = PromptSession(
            key_bindings=self.build_key_bindings(),
            completer=completer,
            history=history,
            complete_while_typing=complete_while_typing,
            style=self._style,
        )

    # ---------- public API ----------

    async def read(self, prompt: str) -> str:
        self._ensure_session()
        assert self.prompt_session is not None

        self._prompt = prompt
        with patch_stdout():
            return await self.prompt_session.prompt_async(
                lambda: ANSI(self._prompt)
            )

    def write(self, text: str) -> None:
        """Write text followed by a newline."""
        print_formatted_text(ANSI(text), style=self._style)

    def refresh_prompt(self, prompt: str) -> None:
        """Re-display the prompt (e.g. after cd)."""
        self._prompt = prompt
        if self.prompt_session is None:
            return
        app = self.prompt_session.app
        if app.is_running:
            app.invalidate()

    # ---------- keybindings ----------

    def build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("c-l")
        def _(event):
            try:
                event.app.renderer.clear()
            except Exception:
                pass
            event.app.invalidate()

        return kb
