# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Filesystem discovery and configuration loading for pysh.

Handles:
- Data root resolution (PYSH_DATA_HOME, home directory)
- History file and crash log locations
- Packaged YAML defaults loading (pysh_cli/defaults/*.yaml)
"""

from __future__ import annotations

import os
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml

DEFAULT_NAME = "pysh"
DEFAULT_HISTORY_FILENAME = ".pysh_history"
DEFAULT_HISTORY_MAX_LINES = 250


# -----------------------
# Config model wrapper
# -----------------------


class YAMLConfig:
    """Simple config wrapper that implements ConfigModel protocol."""

    def __init__(self, config_dict: dict[str, Any]):
        self._config = config_dict

    @property
    def system(self) -> dict[str, Any]:
        section = self._config.get("system", {})
        return section if isinstance(section, dict) else {}

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Nested lookup using dot-separated path.
        Example: get_path("history.max_lines", 250) -> int
        """
        if not path:
            return default

        cur: Any = self._config
        for part in path.split("."):
            if not isinstance(cur, dict):
                return default
            if part not in cur:
                return default
            cur = cur[part]
        return cur


# -----------------------
# Data root + file helpers
# -----------------------


def get_data_root() -> Path:
    """Get the data root directory for pysh.

    Resolution order:
    1. PYSH_DATA_HOME environment variable (if set)
    2. The user's home directory
    """
    pysh_data_home = os.getenv("PYSH_DATA_HOME")
    if pysh_data_home:
        return Path(pysh_data_home)
    return Path.home()


def history_path(cfg: YAMLConfig | None = None) -> Path:
    """<data_root>/<history.filename> (default ~/.pysh_history)"""
    filename = DEFAULT_HISTORY_FILENAME
    if cfg is not None:
        filename = str(cfg.get_path("history.filename", filename))
    return get_data_root() / filename


def history_max_lines(cfg: YAMLConfig | None = None) -> int:
    """Retention cap for persisted history lines."""
    if cfg is None:
        return DEFAULT_HISTORY_MAX_LINES
    value = cfg.get_path("history.max_lines", DEFAULT_HISTORY_MAX_LINES)
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return DEFAULT_HISTORY_MAX_LINES


def crash_log_path() -> Path:
    """<data_root>/.pysh/logs/crash.log"""
    return get_data_root() / ".pysh" / "logs" / "crash.log"


# -----------------------
# Packaged defaults loading
# -----------------------


def _defaults_dir() -> Path:
    """Return the installed path to packaged defaults directory."""
    return Path(
        importlib_resources.files("pysh_cli.defaults")
    )  # type: ignore[arg-type]


def load_defaults_yaml(filename: str) -> dict[str, Any]:
    """
    Load a YAML file from pysh_cli/defaults/.
    """
    defaults_dir = _defaults_dir()
    path = defaults_dir / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Missing defaults YAML: {filename} "
            f"(looked in {defaults_dir})"
        )

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(
            f"Defaults YAML {filename} must load to a mapping/dict."
        )
    return data


def load_system_config() -> YAMLConfig:
    """
    Load system.yaml from packaged defaults and return a YAMLConfig wrapper.
    """
    return YAMLConfig(load_defaults_yaml("system.yaml"))
