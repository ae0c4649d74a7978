# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Command namespace composition.

The namespace is a plain dict (exec() needs an exact dict for globals)
built from ordered layers: shell primitives first, then overrides, then
session helpers. Later layers win, so shadowing is decided here rather
than by mutation order elsewhere.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def build_namespace(*layers: Mapping[str, Any]) -> dict[str, Any]:
    """Merge layers left to right into a fresh namespace."""
    namespace: dict[str, Any] = {}
    for layer in layers:
        namespace.update(layer)
    return namespace


def is_public_name(name: str) -> bool:
    # __builtins__ is injected by exec() on first evaluation
    return not (name.startswith("__") and name.endswith("__"))


def public_names(namespace: Mapping[str, Any]) -> list[str]:
    """Namespace keys in insertion order, without dunder entries."""
    return [name for name in namespace if is_public_name(name)]
