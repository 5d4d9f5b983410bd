"""Unit tests for the status synchronizer.

The watcher is driven directly through process_file/notify; no filesystem
observer is started here.
"""

import queue
import threading
import time

from agentdeck.core.hook_status import HookStatus, write_hook_status
from agentdeck.core.messages import StatusChanged
from agentdeck.core.models import Session, SessionStatus
from agentdeck.core.status_sync import (
    StatusSynchronizer,
    apply_hook_status,
    listen_for_hook_changes,
    start_status_sync,
)
from agentdeck.core.status_watcher import StatusFileWatcher


def test_listen_without_watcher_returns_none_immediately():
    started = time.monotonic()
    assert listen_for_hook_changes(None) is None
    assert time.monotonic() - started < 0.1


def test_listen_returns_none_once_stopped(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    watcher.stop()
    assert listen_for_hook_changes(watcher) is None


def test_listen_returns_one_message_per_signal(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    watcher.notify()

    message = listen_for_hook_changes(watcher)

    assert isinstance(message, StatusChanged)


def test_rapid_notifications_coalesce(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    for _ in range(5):
        watcher.notify()

    assert watcher.wait_for_change(timeout=0.05) is True
    assert watcher.wait_for_change(timeout=0.05) is False


def test_stop_wakes_blocked_waiter(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    results: list[bool] = []
    waiter = threading.Thread(target=lambda: results.append(watcher.wait_for_change()))
    waiter.start()

    watcher.stop()
    waiter.join(timeout=0.5)

    assert not waiter.is_alive()
    assert results == [False]


def test_stop_is_idempotent_and_silences_notify(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    watcher.stop()
    watcher.stop()
    watcher.notify()
    assert watcher.wait_for_change(timeout=0.01) is False


def test_process_file_updates_snapshot(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    path = write_hook_status(tmp_path, "sess-1", "waiting", event="Stop")

    watcher.process_file(path)

    assert watcher.get_hook_status("sess-1").status == "waiting"
    assert set(watcher.snapshot()) == {"sess-1"}
    assert watcher.wait_for_change(timeout=0.05) is True


def test_apply_hook_status_maps_status_and_tool():
    session = Session(session_id="s", title="S")

    changed = apply_hook_status(session, HookStatus(status="dead", tool="gemini"))

    assert changed is True
    assert session.status.get() is SessionStatus.ERROR
    assert session.tool.get() == "gemini"
    assert apply_hook_status(session, HookStatus(status="dead", tool="gemini")) is False


def test_synchronizer_applies_status_and_posts_message(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    outbox: queue.Queue[StatusChanged] = queue.Queue()
    session = Session(session_id="sess-1", title="S")
    sync = StatusSynchronizer(watcher, outbox)
    sync.sync_tracked([session])
    sync.start()

    watcher.process_file(write_hook_status(tmp_path, "sess-1", "running"))
    message = outbox.get(timeout=0.5)
    sync.stop()

    assert isinstance(message, StatusChanged)
    assert session.status.get() is SessionStatus.RUNNING


def test_synchronizer_ignores_untracked_sessions(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    outbox: queue.Queue[StatusChanged] = queue.Queue()
    session = Session(session_id="sess-1", title="S")
    sync = StatusSynchronizer(watcher, outbox)
    sync.track(session)
    sync.untrack("sess-1")

    watcher.process_file(write_hook_status(tmp_path, "sess-1", "running"))

    assert sync.apply_all() == 0
    assert session.status.get() is SessionStatus.IDLE


def test_track_applies_known_status_immediately(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    watcher.process_file(write_hook_status(tmp_path, "sess-1", "waiting"))
    session = Session(session_id="sess-1", title="S")

    StatusSynchronizer(watcher, queue.Queue()).track(session)

    assert session.status.get() is SessionStatus.WAITING


def test_stop_prevents_further_messages(tmp_path):
    watcher = StatusFileWatcher(tmp_path)
    outbox: queue.Queue[StatusChanged] = queue.Queue()
    sync = StatusSynchronizer(watcher, outbox)
    sync.start()

    sync.stop()
    watcher.notify()

    assert outbox.empty()
    sync.stop()


def test_start_status_sync_without_hooks_dir_is_disabled():
    sync = start_status_sync(None, queue.Queue())
    assert sync.enabled is False
    sync.stop()
