"""Tests for the agentdeck command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from agentdeck.cli import main as cli
from agentdeck.config import get_config
from agentdeck.config.schema import DeckConfig
from agentdeck.core.storage import SessionStorage


@pytest.fixture(autouse=True)
def _no_file_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", lambda *_args, **_kwargs: None)


@pytest.fixture
def store(tmp_path: Path) -> Path:
    return tmp_path / "sessions.json"


def _run(store: Path, *argv: str) -> int:
    return cli.run(["--store", str(store), *argv], DeckConfig())


def test_add_group_and_session(store: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(store, "group", "add", "work") == 0
    assert _run(store, "add", "Fix bug", "-g", "work", "-t", "codex", "--worktree", "/wt", "--yolo") == 0

    session_id = capsys.readouterr().out.splitlines()[-1]
    tree = SessionStorage(store).load()
    session = tree.sessions[session_id]
    assert session.group_path == "work"
    assert session.tool.get() == "codex"
    assert session.worktree_path == "/wt"
    assert session.yolo_mode is True
    assert tree.groups["work"].name == "work"


def test_ls_prints_tree(store: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(store, "group", "add", "work", "--name", "Work")
    _run(store, "add", "Parent", "-g", "work")
    parent_id = capsys.readouterr().out.splitlines()[-1]
    _run(store, "fork", parent_id)
    capsys.readouterr()

    assert _run(store, "ls") == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "▾ Work [work] (2)"
    assert lines[1].startswith("  Parent  claude  idle")
    assert lines[2].startswith("    ↳ Parent (fork)  claude")


def test_unknown_tool_exits_with_error(store: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(store, "add", "X", "-t", "notatool") == 1
    assert "agentdeck error:" in capsys.readouterr().err
    assert not store.exists()


def test_group_rm_requires_cascade_when_not_empty(store: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(store, "group", "add", "work")
    _run(store, "add", "Inside", "-g", "work")

    assert _run(store, "group", "rm", "work") == 1
    assert _run(store, "group", "rm", "work", "--cascade") == 0

    tree = SessionStorage(store).load()
    assert tree.groups == {}
    assert tree.sessions == {}


def test_group_rename(store: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(store, "group", "add", "work")

    assert _run(store, "group", "rename", "work", "Day job") == 0
    assert capsys.readouterr().out.splitlines()[-1] == "Day job"
    assert SessionStorage(store).load().groups["work"].name == "Day job"

    assert _run(store, "group", "rename", "work", "") == 1
    assert _run(store, "group", "rename", "missing", "X") == 1
    assert "agentdeck error:" in capsys.readouterr().err
    assert SessionStorage(store).load().groups["work"].name == "Day job"


def test_invalid_config_value_is_reported(
    tmp_path: Path, store: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / "config.yml"
    config_path.write_text("ui:\n  theme: neon\n", encoding="utf-8")
    monkeypatch.setenv("AGENTDECK_CONFIG_PATH", str(config_path))
    get_config.cache_clear()
    try:
        assert cli.run(["--store", str(store), "ls"]) == 1
    finally:
        get_config.cache_clear()

    assert "Unknown theme" in capsys.readouterr().err
    assert not store.exists()


    assert tree.groups == {}
    assert tree.sessions == {}


def test_rm_missing_session_fails(store: Path) -> None:
    assert _run(store, "rm", "nope") == 1


def test_rm_session(store: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(store, "add", "Doomed")
    session_id = capsys.readouterr().out.splitlines()[-1]

    assert _run(store, "rm", session_id) == 0
    assert SessionStorage(store).load().sessions == {}


def test_hook_writes_status_from_event(tmp_path: Path, store: Path) -> None:
    hooks = tmp_path / "hooks"

    code = cli.run(
        ["--store", str(store), "--hooks-dir", str(hooks), "hook", "sess-1", "--event", "Stop", "--tool", "claude"],
        DeckConfig(),
    )

    assert code == 0
    data = json.loads((hooks / "sess-1.json").read_text(encoding="utf-8"))
    assert data["status"] == "waiting"
    assert data["event"] == "Stop"
    assert data["tool"] == "claude"


def test_hook_event_without_status_is_ignored(tmp_path: Path, store: Path) -> None:
    hooks = tmp_path / "hooks"

    code = cli.run(["--hooks-dir", str(hooks), "hook", "sess-1", "--event", "Notification"], DeckConfig())

    assert code == 0
    assert not (hooks / "sess-1.json").exists()
