"""Integration tests for hook status watching with a real watchdog observer."""

from __future__ import annotations

import queue
from pathlib import Path

import pytest

from agentdeck.core.errors import WatchUnavailableError
from agentdeck.core.hook_status import write_hook_status
from agentdeck.core.messages import StatusChanged
from agentdeck.core.models import Session, SessionStatus
from agentdeck.core.status_sync import start_status_sync
from agentdeck.core.status_watcher import StatusFileWatcher


@pytest.fixture
def watcher(tmp_path: Path):
    w = StatusFileWatcher(tmp_path / "hooks", debounce_s=0.05)
    yield w
    w.stop()


def test_written_hook_file_signals_change(watcher: StatusFileWatcher) -> None:
    watcher.start()

    write_hook_status(watcher.hooks_dir, "sess-1", "running", event="PreToolUse")

    assert watcher.wait_for_change(timeout=3) is True
    status = watcher.get_hook_status("sess-1")
    assert status is not None
    assert status.status == "running"


def test_burst_of_writes_coalesces(watcher: StatusFileWatcher) -> None:
    watcher.start()

    for status in ("running", "running", "waiting"):
        write_hook_status(watcher.hooks_dir, "sess-1", status)

    assert watcher.wait_for_change(timeout=3) is True
    # Late filesystem events may still land; the final state is what matters
    watcher.wait_for_change(timeout=0.3)
    assert watcher.get_hook_status("sess-1").status == "waiting"


def test_existing_files_loaded_on_start(tmp_path: Path) -> None:
    hooks = tmp_path / "hooks"
    write_hook_status(hooks, "sess-old", "waiting", event="Stop")
    (hooks / "notes.txt").write_text("ignored", encoding="utf-8")
    watcher = StatusFileWatcher(hooks)
    try:
        watcher.start()
        assert set(watcher.snapshot()) == {"sess-old"}
        assert watcher.wait_for_change(timeout=0.1) is True
    finally:
        watcher.stop()


def test_start_on_unusable_directory_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    watcher = StatusFileWatcher(blocker / "hooks")

    with pytest.raises(WatchUnavailableError):
        watcher.start()


def test_start_status_sync_degrades_when_watch_unavailable(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    sync = start_status_sync(blocker / "hooks", queue.Queue())

    assert sync.enabled is False
    sync.stop()


def test_end_to_end_status_reaches_tracked_session(tmp_path: Path) -> None:
    hooks = tmp_path / "hooks"
    outbox: queue.Queue[StatusChanged] = queue.Queue()
    sync = start_status_sync(hooks, outbox, debounce_s=0.05)
    session = Session(session_id="sess-1", title="S")
    try:
        assert sync.enabled is True
        sync.track(session)

        write_hook_status(hooks, "sess-1", "waiting", event="Stop", tool="codex")

        assert isinstance(outbox.get(timeout=3), StatusChanged)
        assert session.status.get() is SessionStatus.WAITING
        assert session.tool.get() == "codex"
    finally:
        sync.stop()
