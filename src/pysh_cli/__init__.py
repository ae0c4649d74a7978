# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
pysh core package.

An interactive Python shell with filesystem primitives, persistent
history and non-interactive script execution.
"""

__version__ = "1.2.0"

from .session import Session as Session  # noqa: E402,F401 (re-export)
