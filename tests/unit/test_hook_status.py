"""Unit tests for hook status files."""

import json

import pytest

from agentdeck.core.hook_status import (
    instance_id_for,
    parse_hook_file,
    status_for_event,
    to_session_status,
    write_hook_status,
)
from agentdeck.core.models import SessionStatus


@pytest.mark.parametrize(
    ("hook_status", "expected"),
    [
        ("running", SessionStatus.RUNNING),
        ("waiting", SessionStatus.WAITING),
        ("idle", SessionStatus.IDLE),
        ("starting", SessionStatus.STARTING),
        ("dead", SessionStatus.ERROR),
        ("error", SessionStatus.ERROR),
        ("bogus", None),
    ],
)
def test_to_session_status(hook_status, expected):
    assert to_session_status(hook_status) is expected


def test_status_for_event():
    assert status_for_event("SessionStart") == "idle"
    assert status_for_event("UserPromptSubmit") == "running"
    assert status_for_event("PreToolUse") == "running"
    assert status_for_event("Stop") == "waiting"
    assert status_for_event("SessionEnd") == "dead"
    assert status_for_event("Notification", "permission_prompt") == "waiting"
    assert status_for_event("Notification", "idle_prompt") is None
    assert status_for_event("Unknown") is None


def test_write_then_parse(tmp_path):
    path = write_hook_status(tmp_path, "sess-1", "running", event="PreToolUse", agent_session_id="abc", tool="codex")

    assert path == tmp_path / "sess-1.json"
    assert [p.name for p in tmp_path.iterdir()] == ["sess-1.json"]
    hook = parse_hook_file(path)
    assert hook is not None
    assert hook.status == "running"
    assert hook.event == "PreToolUse"
    assert hook.agent_session_id == "abc"
    assert hook.tool == "codex"
    assert hook.updated_at is not None


def test_parse_rejects_garbage(tmp_path):
    bad = tmp_path / "x.json"
    bad.write_text("{not json", encoding="utf-8")
    assert parse_hook_file(bad) is None

    no_status = tmp_path / "y.json"
    no_status.write_text(json.dumps({"event": "Stop"}), encoding="utf-8")
    assert parse_hook_file(no_status) is None

    assert parse_hook_file(tmp_path / "missing.json") is None


def test_instance_id_for_ignores_temp_files(tmp_path):
    assert instance_id_for(tmp_path / "sess-1.json") == "sess-1"
    assert instance_id_for(tmp_path / ".sess-1.abc.tmp") is None
    assert instance_id_for(tmp_path / "sess-1.json.swp") is None
    assert instance_id_for(tmp_path / ".hidden.json") is None
