"""Unit tests for the domain model helpers."""

import threading

import pytest

from agentdeck.core.errors import NameValidationError, UnknownToolError
from agentdeck.core.models import (
    LockedValue,
    Session,
    SessionStatus,
    is_descendant_path,
    parent_path_of,
    validate_name,
    validate_tool,
)


def test_locked_value_set_reports_change():
    cell = LockedValue(SessionStatus.IDLE)
    assert cell.set(SessionStatus.RUNNING) is True
    assert cell.set(SessionStatus.RUNNING) is False
    assert cell.get() is SessionStatus.RUNNING


def test_locked_value_concurrent_writers_leave_a_written_value():
    """Readers never observe anything but a value some writer stored."""
    cell = LockedValue(SessionStatus.IDLE)
    written = {SessionStatus.RUNNING, SessionStatus.WAITING, SessionStatus.ERROR}
    seen: set[SessionStatus] = set()

    def writer(status: SessionStatus) -> None:
        for _ in range(500):
            cell.set(status)

    def reader() -> None:
        for _ in range(500):
            seen.add(cell.get())

    threads = [threading.Thread(target=writer, args=(s,)) for s in written]
    threads.append(threading.Thread(target=reader))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cell.get() in written
    assert seen <= written | {SessionStatus.IDLE}


def test_session_is_worktree():
    assert Session(session_id="a", title="A", worktree_path="/wt").is_worktree() is True
    assert Session(session_id="b", title="B").is_worktree() is False


def test_parent_path_of():
    assert parent_path_of("a/b/c") == "a/b"
    assert parent_path_of("a") == ""


def test_is_descendant_path():
    assert is_descendant_path("a/b", "a")
    assert is_descendant_path("a", "a")
    assert not is_descendant_path("ab", "a")
    assert is_descendant_path("anything", "")


def test_validate_name_strips_and_limits():
    assert validate_name("  ok  ") == "ok"
    assert validate_name("x" * 50) == "x" * 50
    with pytest.raises(NameValidationError):
        validate_name("x" * 51)


def test_validate_tool():
    assert validate_tool("Claude") == "claude"
    assert validate_tool("mine", ["mine"]) == "mine"
    with pytest.raises(UnknownToolError):
        validate_tool("mine")
