"""Bridge between the hook status watcher and the UI loop.

The synchronizer thread blocks on the watcher, copies hook statuses into the
tracked sessions' LockedValue cells and posts one StatusChanged per wakeup.
It never touches the GroupTree; the UI thread tells it which sessions exist.
"""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Iterable

from loguru import logger

from agentdeck.constants import HOOK_DEBOUNCE_S, WATCHER_JOIN_TIMEOUT_S
from agentdeck.core.errors import WatchUnavailableError
from agentdeck.core.hook_status import HookStatus, to_session_status
from agentdeck.core.messages import StatusChanged, UiMessage
from agentdeck.core.models import Session
from agentdeck.core.status_watcher import StatusFileWatcher


def listen_for_hook_changes(watcher: StatusFileWatcher | None) -> StatusChanged | None:
    """Block until the watcher signals, then return one StatusChanged.

    Returns None immediately for a missing watcher, and None once the watcher
    is stopped.
    """
    if watcher is None:
        return None
    if watcher.wait_for_change():
        return StatusChanged()
    return None


def apply_hook_status(session: Session, hook: HookStatus) -> bool:
    """Write a hook status into a session. Returns True when anything changed."""
    changed = False
    status = to_session_status(hook.status)
    if status is not None:
        changed = session.status.set(status) or changed
    else:
        logger.debug("Unknown hook status {!r} for {}", hook.status, session.session_id)
    if hook.tool:
        changed = session.tool.set(hook.tool) or changed
    return changed


class StatusSynchronizer:
    """Runs `listen_for_hook_changes` on a daemon thread and feeds the outbox."""

    def __init__(self, watcher: StatusFileWatcher | None, outbox: queue.Queue[UiMessage]) -> None:
        self._watcher = watcher
        self._outbox = outbox
        self._tracked: dict[str, Session] = {}
        self._tracked_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stopped = threading.Event()

    @property
    def enabled(self) -> bool:
        return self._watcher is not None

    def track(self, session: Session) -> None:
        with self._tracked_lock:
            self._tracked[session.session_id] = session
        self._apply_one(session)

    def untrack(self, session_id: str) -> None:
        with self._tracked_lock:
            self._tracked.pop(session_id, None)

    def sync_tracked(self, sessions: Iterable[Session]) -> None:
        """Replace the tracked set with sessions."""
        fresh = {s.session_id: s for s in sessions}
        with self._tracked_lock:
            self._tracked = fresh
        self.apply_all()

    def tracked_ids(self) -> set[str]:
        with self._tracked_lock:
            return set(self._tracked)

    def _apply_one(self, session: Session) -> None:
        if self._watcher is None:
            return
        hook = self._watcher.get_hook_status(session.session_id)
        if hook is not None:
            apply_hook_status(session, hook)

    def apply_all(self) -> int:
        """Copy the watcher's snapshot into tracked sessions; returns how many changed."""
        if self._watcher is None:
            return 0
        snapshot = self._watcher.snapshot()
        with self._tracked_lock:
            targets = [(s, snapshot.get(sid)) for sid, s in self._tracked.items()]
        changed = 0
        for session, hook in targets:
            if hook is not None and apply_hook_status(session, hook):
                changed += 1
        return changed

    def start(self) -> None:
        if self._watcher is None or self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="agentdeck-status-sync", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.is_set():
            message = listen_for_hook_changes(self._watcher)
            if message is None:
                break
            if self._stopped.is_set():
                break
            changed = self.apply_all()
            logger.debug("Hook change applied to {} session(s)", changed)
            self._outbox.put(message)
        logger.debug("Status synchronizer exited")

    def stop(self) -> None:
        """Stop the watcher and the listener thread. Idempotent."""
        self._stopped.set()
        if self._watcher is not None:
            self._watcher.stop()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=WATCHER_JOIN_TIMEOUT_S)


def start_status_sync(
    hooks_dir: Path | None,
    outbox: queue.Queue[UiMessage],
    *,
    debounce_s: float = HOOK_DEBOUNCE_S,
) -> StatusSynchronizer:
    """Build and start a synchronizer, degrading to a disabled one on failure.

    A None hooks_dir means status updates are turned off in config.
    """
    if hooks_dir is None:
        return StatusSynchronizer(None, outbox)
    watcher = StatusFileWatcher(hooks_dir, debounce_s)
    try:
        watcher.start()
    except WatchUnavailableError as exc:
        logger.warning("Hook status updates disabled: {}", exc)
        return StatusSynchronizer(None, outbox)
    sync = StatusSynchronizer(watcher, outbox)
    sync.start()
    return sync
