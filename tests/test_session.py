# tests/test_session.py
"""
Session tests with dependency injection.
Session owns cwd/prompt/history state; evaluation is delegated to the runner.
"""
from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from pysh_cli import commands
from pysh_cli.history import HistoryPersistenceError
from pysh_cli.session import Session, SessionState, write_crash_log

# ----------------------------------------------------------------
# Mock dependencies
# ----------------------------------------------------------------


class FakeHistoryStore:
    """Mock HistoryStore for testing session behavior."""

    def __init__(self, lines=None, fail_load=False, fail_save=False):
        self.lines = list(lines or [])
        self.saved: list[list[str]] = []
        self.fail_load = fail_load
        self.fail_save = fail_save

    def load(self) -> list[str]:
        if self.fail_load:
            raise HistoryPersistenceError("Error loading history: boom")
        return list(self.lines)

    def save(self, lines: list[str]) -> None:
        if self.fail_save:
            raise HistoryPersistenceError("Error saving history: disk full")
        self.saved.append(list(lines))


class FakeConfig:
    """Mock ConfigModel for testing session behavior."""

    def __init__(self, name="pysh", max_lines=250):
        self.system = {"name": name}
        self._paths = {"history.max_lines": max_lines}

    def get_path(self, path, default=None):
        return self._paths.get(path, default)


class Recorder:
    def __init__(self):
        self.out: list[str] = []
        self.err: list[str] = []
        self.exits: list[int] = []
        self.prompts: list[str] = []


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def make_session(store=None, config=None) -> tuple[Session, Recorder]:
    rec = Recorder()
    s = Session(
        config=config or FakeConfig(),
        history_store=store or FakeHistoryStore(),
        output_fn=rec.out.append,
        error_fn=rec.err.append,
        prompt_fn=rec.prompts.append,
        exit_fn=rec.exits.append,
    )
    return s, rec


@pytest.fixture
def session_and_rec(workdir: Path) -> tuple[Session, Recorder]:
    s, rec = make_session()
    s.start()
    return s, rec


# ----------------------------------------------------------------
# start()
# ----------------------------------------------------------------


def test_start_initializes_directory_prompt_and_state(workdir: Path):
    s, _ = make_session()
    assert s.state is SessionState.CREATED

    s.start()

    assert s.state is SessionState.RUNNING
    assert s.running
    assert s.current_directory == os.getcwd()
    assert s.prompt == f"pysh:{os.getcwd()} > "


def test_prompt_uses_configured_name(workdir: Path):
    s, _ = make_session(config=FakeConfig(name="myshell"))
    s.start()
    assert s.prompt.startswith("myshell:")


def test_start_loads_history_newest_first(workdir: Path):
    store = FakeHistoryStore(lines=["newer", "older"])
    s, _ = make_session(store=store)
    s.history.append("already-in-memory")

    s.start()

    assert s.history == ["newer", "older", "already-in-memory"]


def test_start_reports_history_load_failure_and_continues(workdir: Path):
    s, rec = make_session(store=FakeHistoryStore(fail_load=True))

    s.start()

    assert s.running
    assert s.history == []
    assert any("boom" in e for e in rec.err)


def test_namespace_contains_primitives_and_helpers(session_and_rec):
    s, _ = session_and_rec
    for name in commands.PRIMITIVES:
        assert name in s.namespace
    for name in ("sh", "run", "pwdl", "lsl", "exit"):
        assert name in s.namespace


def test_helpers_shadow_primitives(session_and_rec):
    s, _ = session_and_rec
    assert s.namespace["cd"] == s.change_directory
    assert s.namespace["cd"] is not commands.cd
    assert s.namespace["exit"] == s.terminate


# ----------------------------------------------------------------
# change_directory()
# ----------------------------------------------------------------


def test_cd_to_existing_directory_updates_state_and_prompt(session_and_rec, workdir):
    s, rec = session_and_rec
    target = workdir / "test"
    target.mkdir()

    s.change_directory("test")

    assert s.current_directory == str(target.resolve())
    assert str(target.resolve()) in s.prompt
    assert rec.prompts == [s.prompt]
    assert rec.err == []


def test_cd_to_invalid_target_leaves_state_and_reports(session_and_rec):
    s, rec = session_and_rec
    before_dir, before_prompt = s.current_directory, s.prompt

    s.change_directory("does-not-exist")

    assert s.current_directory == before_dir
    assert s.prompt == before_prompt
    assert rec.prompts == []
    assert len(rec.err) == 1
    assert rec.err[0].startswith("cd: ")
    assert "does-not-exist" in rec.err[0]


def test_cd_from_evaluated_input_updates_prompt(session_and_rec, workdir):
    s, _ = session_and_rec
    (workdir / "sub").mkdir()

    asyncio.run(s.handle_line("cd('sub')"))

    assert s.prompt.endswith("sub > ")


# ----------------------------------------------------------------
# pwdl / lsl
# ----------------------------------------------------------------


def test_pwdl_prints_working_directory(session_and_rec):
    s, rec = session_and_rec
    s.pwdl()
    assert rec.out == [os.getcwd()]


def test_lsl_prints_listing(session_and_rec, workdir):
    s, rec = session_and_rec
    (workdir / "a.txt").write_text("")
    s.lsl()
    assert rec.out == ["a.txt"]


# ----------------------------------------------------------------
# History recording
# ----------------------------------------------------------------


def test_handle_line_records_non_blank_lines_newest_first(session_and_rec):
    s, _ = session_and_rec

    asyncio.run(s.handle_line("x = 1"))
    asyncio.run(s.handle_line("def f():\n    return x\n"))

    assert s.history == ["    return x", "def f():", "x = 1"]


def test_handle_line_displays_result(session_and_rec):
    s, rec = session_and_rec
    asyncio.run(s.handle_line("1 + 1"))
    assert rec.out == ["2"]


def test_handle_line_reports_errors_and_session_continues(session_and_rec):
    s, rec = session_and_rec

    asyncio.run(s.handle_line("raise RuntimeError('boom')"))
    asyncio.run(s.handle_line("'still alive'"))

    assert rec.err == ["Error: RuntimeError: boom"]
    assert rec.out == ["'still alive'"]
    assert s.running


def test_definitions_persist_between_lines(session_and_rec):
    s, rec = session_and_rec
    asyncio.run(s.handle_line("def ls():\n    return 'mine'\n"))
    asyncio.run(s.handle_line("ls()"))
    assert rec.out == ["'mine'"]


# ----------------------------------------------------------------
# terminate()
# ----------------------------------------------------------------


def test_terminate_saves_history_and_exits(session_and_rec):
    s, rec = session_and_rec
    s.record("first")
    s.record("second")

    s.terminate()

    assert s.history_store.saved == [["second", "first"]]
    assert rec.exits == [0]
    assert s.state is SessionState.TERMINATED
    assert not s.running


def test_terminate_is_single_fire(session_and_rec):
    s, rec = session_and_rec

    s.terminate()
    s.terminate()
    s.terminate(3)

    assert len(s.history_store.saved) == 1
    assert rec.exits == [0]


def test_terminate_caps_history_dropping_oldest(workdir):
    s, _ = make_session(config=FakeConfig(max_lines=3))
    s.start()
    for line in ["1", "2", "3", "4", "5"]:
        s.record(line)

    s.terminate()

    assert s.history_store.saved == [["5", "4", "3"]]


def test_terminate_reports_save_failure_and_still_exits(workdir):
    s, rec = make_session(store=FakeHistoryStore(fail_save=True))
    s.start()

    s.terminate(2)

    assert any("disk full" in e for e in rec.err)
    assert rec.exits == [2]
    assert s.state is SessionState.TERMINATED


def test_exit_helper_from_input_terminates(session_and_rec):
    s, rec = session_and_rec

    asyncio.run(s.handle_line("exit()"))

    assert rec.exits == [0]
    assert s.history_store.saved == [["exit()"]]


def test_exit_with_real_sys_exit_raises_system_exit(workdir):
    s = Session(config=FakeConfig(), history_store=FakeHistoryStore())
    s.start()

    with pytest.raises(SystemExit):
        asyncio.run(s.handle_line("exit()"))

    # A second trigger (e.g. EOF) does nothing
    s.terminate()
    assert len(s.history_store.saved) == 1


# ----------------------------------------------------------------
# Crash log
# ----------------------------------------------------------------


def test_write_crash_log_appends_entry(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PYSH_DATA_HOME", str(tmp_path))

    try:
        raise RuntimeError("kaput")
    except RuntimeError as e:
        write_crash_log(e, raw_input="run('x.py')", cwd="/somewhere")
        write_crash_log(e)

    log = (tmp_path / ".pysh" / "logs" / "crash.log").read_text(encoding="utf-8")
    assert log.count("----") == 2
    assert "input=run('x.py')" in log
    assert "cwd=/somewhere" in log
    assert "error=RuntimeError: kaput" in log
