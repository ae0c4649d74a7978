# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Shell primitives exposed in the pysh command namespace.

Every primitive returns a ShellResult(code, stdout, stderr) instead of
raising, so callers decide how failures are reported:
- filesystem primitives (cd, pwd, ls, cat, mkdir, rm, touch, which, echo)
  work in-process against the process working directory
- sh() runs a command line through a subprocess with a timeout
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ShellResult:
    code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.code == 0

    def __str__(self) -> str:
        return self.stdout


def _fail(name: str, message: str, code: int = 1) -> ShellResult:
    return ShellResult(code, "", f"{name}: {message}")


def cd(target: str = "~") -> ShellResult:
    """Change the process working directory."""
    path = os.path.expanduser(str(target))
    try:
        os.chdir(path)
    except FileNotFoundError:
        return _fail("cd", f"no such file or directory: {target}")
    except NotADirectoryError:
        return _fail("cd", f"not a directory: {target}")
    except OSError as e:
        return _fail("cd", f"{target}: {e.strerror or e}")
    return ShellResult(0)


def pwd() -> ShellResult:
    return ShellResult(0, os.getcwd(), "")


def ls(path: str = ".", show_all: bool = False) -> ShellResult:
    """List directory entries, sorted, one per line."""
    target = os.path.expanduser(str(path))
    if os.path.isfile(target):
        return ShellResult(0, str(path), "")
    try:
        names = sorted(os.listdir(target))
    except FileNotFoundError:
        return _fail("ls", f"no such file or directory: {path}")
    except OSError as e:
        return _fail("ls", f"{path}: {e.strerror or e}")

    if not show_all:
        names = [n for n in names if not n.startswith(".")]
    return ShellResult(0, "\n".join(names), "")


def cat(*paths: str) -> ShellResult:
    """Concatenate file contents."""
    if not paths:
        return _fail("cat", "no paths given")

    chunks: list[str] = []
    errors: list[str] = []
    for p in paths:
        try:
            chunks.append(
                Path(os.path.expanduser(str(p))).read_text(encoding="utf-8")
            )
        except FileNotFoundError:
            errors.append(f"cat: no such file or directory: {p}")
        except OSError as e:
            errors.append(f"cat: {p}: {e.strerror or e}")

    return ShellResult(1 if errors else 0, "".join(chunks), "\n".join(errors))


def echo(*parts: Any) -> ShellResult:
    return ShellResult(0, " ".join(str(p) for p in parts), "")


def mkdir(path: str, parents: bool = False) -> ShellResult:
    target = Path(os.path.expanduser(str(path)))
    try:
        target.mkdir(parents=parents, exist_ok=parents)
    except FileExistsError:
        return _fail("mkdir", f"path already exists: {path}")
    except FileNotFoundError:
        return _fail("mkdir", f"no such file or directory: {path}")
    except OSError as e:
        return _fail("mkdir", f"{path}: {e.strerror or e}")
    return ShellResult(0)


def rm(path: str, recursive: bool = False) -> ShellResult:
    target = Path(os.path.expanduser(str(path)))
    if not target.exists() and not target.is_symlink():
        return _fail("rm", f"no such file or directory: {path}")
    try:
        if target.is_dir() and not target.is_symlink():
            if not recursive:
                return _fail("rm", f"path is a directory: {path}")
            shutil.rmtree(target)
        else:
            target.unlink()
    except OSError as e:
        return _fail("rm", f"{path}: {e.strerror or e}")
    return ShellResult(0)


def touch(path: str) -> ShellResult:
    target = Path(os.path.expanduser(str(path)))
    try:
        target.touch()
    except OSError as e:
        return _fail("touch", f"{path}: {e.strerror or e}")
    return ShellResult(0)


def which(name: str) -> ShellResult:
    found = shutil.which(str(name))
    if found is None:
        return _fail("which", f"no {name} in PATH")
    return ShellResult(0, found, "")


class SubprocessShell:
    """Runs command lines for the `sh` primitive."""

    def __init__(self, force_color: bool = True, timeout: int = 30):
        """Initialize with configuration.

        Args:
            force_color: If True, set color-forcing env variables
            timeout: Command timeout in seconds (default: 30)
        """
        self.force_color = force_color
        self.timeout = timeout

    def _build_env(self) -> dict:
        env = os.environ.copy()
        if self.force_color:
            env["PY_COLORS"] = "1"
            env["FORCE_COLOR"] = "1"
            env["CLICOLOR_FORCE"] = "1"
        return env

    def __call__(self, command: str) -> ShellResult:
        """Run a command line in the current directory and capture output."""
        try:
            result = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self._build_env(),
                cwd=os.getcwd(),
            )
        except subprocess.TimeoutExpired:
            return ShellResult(
                1, "", f"Command timed out after {self.timeout} seconds"
            )
        except OSError as e:
            return ShellResult(1, "", f"Error executing command: {e}")

        # POSIX shells use 127 for "command not found"
        code = 1 if result.returncode == 127 else result.returncode
        return ShellResult(code, result.stdout, result.stderr)


PRIMITIVES: dict[str, Callable[..., ShellResult]] = {
    "cd": cd,
    "pwd": pwd,
    "ls": ls,
    "cat": cat,
    "echo": echo,
    "mkdir": mkdir,
    "rm": rm,
    "touch": touch,
    "which": which,
}


def build_primitives(
    shell: SubprocessShell | None = None,
) -> dict[str, Callable[..., ShellResult]]:
    """Every exported primitive, with `sh` bound to the given runner."""
    out = dict(PRIMITIVES)
    out["sh"] = shell if shell is not None else SubprocessShell()
    return out
