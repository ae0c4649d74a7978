# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Utility functions for pysh.
"""

from __future__ import annotations

import ast
import codeop
from typing import Any

from .commands import ShellResult

INTERPRETER_DIRECTIVE = "#!"


def strip_interpreter_directive(text: str) -> str:
    """Remove a single leading '#!' line; anything else is returned as is.

    Args:
        text: Script source

    Returns:
        Source without its interpreter directive line
    """
    if not text.startswith(INTERPRETER_DIRECTIVE):
        return text

    newline = text.find("\n")
    if newline == -1:
        return ""
    return text[newline + 1:]


def format_result(value: Any) -> str:
    """Render an interactive evaluation result for display.

    Shell results show their stdout; everything else uses repr() like the
    standard Python REPL.
    """
    if isinstance(value, ShellResult):
        return value.stdout
    return repr(value)


def format_error(error: BaseException) -> str:
    message = str(error)
    if message:
        return f"Error: {type(error).__name__}: {message}"
    return f"Error: {type(error).__name__}"


_compiler = codeop.CommandCompiler()
_compiler.compiler.flags |= ast.PyCF_ALLOW_TOP_LEVEL_AWAIT


def is_source_incomplete(text: str) -> bool:
    """Check if interactive input needs more lines.

    Uses the same rules as the standard interactive interpreter: an open
    block, bracket or triple-quoted string asks for continuation. Input
    with a syntax error is complete; the evaluator reports it.

    Args:
        text: The accumulated input so far

    Returns:
        True if more lines are required
    """
    if not text.strip():
        return False
    try:
        return _compiler(text, "<stdin>", "single") is None
    except (SyntaxError, ValueError, OverflowError):
        return False
