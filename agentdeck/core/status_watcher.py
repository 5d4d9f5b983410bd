"""Filesystem watcher for hook status files.

Watches the hooks directory with watchdog, debounces bursts of writes and keeps
the latest HookStatus per session id. Consumers block on `wait_for_change`,
which coalesces any number of file updates into a single wakeup.
"""

from __future__ import annotations

import threading
from pathlib import Path

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from agentdeck.constants import HOOK_DEBOUNCE_S, WATCHER_JOIN_TIMEOUT_S
from agentdeck.core.errors import WatchUnavailableError
from agentdeck.core.hook_status import HookStatus, instance_id_for, parse_hook_file


class _HookFileHandler(FileSystemEventHandler):
    """Watchdog handler that forwards hook file writes to the watcher."""

    def __init__(self, watcher: StatusFileWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def _handle(self, path: object) -> None:
        if isinstance(path, bytes):
            path = path.decode()
        if not isinstance(path, str):
            return
        candidate = Path(path)
        if instance_id_for(candidate) is None:
            return
        self._watcher.schedule(candidate)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.dest_path)


class StatusFileWatcher:
    """Tracks `<hooks_dir>/<session_id>.json` files.

    Lifecycle: Idle -> Watching -> (Signaled -> Watching)* -> Stopped.
    """

    def __init__(self, hooks_dir: Path, debounce_s: float = HOOK_DEBOUNCE_S) -> None:
        self.hooks_dir = hooks_dir
        self.debounce_s = debounce_s
        self._observer: Observer | None = None
        self._statuses: dict[str, HookStatus] = {}
        self._statuses_lock = threading.Lock()
        self._pending: set[Path] = set()
        self._pending_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._cond = threading.Condition()
        self._changed = False
        self._stopped = False

    @property
    def stopped(self) -> bool:
        with self._cond:
            return self._stopped

    def start(self) -> None:
        """Begin watching. Raises WatchUnavailableError if the watch cannot be set up."""
        try:
            self.hooks_dir.mkdir(parents=True, exist_ok=True)
            observer = Observer()
            observer.daemon = True
            observer.schedule(_HookFileHandler(self), str(self.hooks_dir), recursive=False)
            observer.start()
        except (OSError, RuntimeError) as exc:
            raise WatchUnavailableError(f"Cannot watch {self.hooks_dir}: {exc}") from exc
        self._observer = observer
        logger.info("StatusFileWatcher: watching {}", self.hooks_dir)
        self._load_existing()

    def _load_existing(self) -> None:
        try:
            entries = sorted(self.hooks_dir.iterdir())
        except OSError as exc:
            logger.warning("StatusFileWatcher: cannot list {}: {}", self.hooks_dir, exc)
            return
        for entry in entries:
            if entry.is_file() and instance_id_for(entry) is not None:
                self.process_file(entry)

    def schedule(self, path: Path) -> None:
        """Queue path for processing once the debounce window passes."""
        with self._pending_lock:
            if self.stopped:
                return
            self._pending.add(path)
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.debounce_s, self._flush)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _flush(self) -> None:
        with self._pending_lock:
            files = sorted(self._pending)
            self._pending.clear()
            self._timer = None
        for path in files:
            self.process_file(path)

    def process_file(self, path: Path) -> None:
        """Parse one hook file and raise the change flag when it decodes."""
        instance_id = instance_id_for(path)
        if instance_id is None:
            return
        status = parse_hook_file(path)
        if status is None:
            return
        with self._statuses_lock:
            self._statuses[instance_id] = status
        logger.debug("Hook status updated: instance={} status={} event={}", instance_id, status.status, status.event)
        self.notify()

    def notify(self) -> None:
        """Raise the capacity-1 change flag. No-op once stopped."""
        with self._cond:
            if self._stopped:
                return
            self._changed = True
            self._cond.notify_all()

    def wait_for_change(self, timeout: float | None = None) -> bool:
        """Block until a change is flagged (True) or the watcher stops (False).

        Also returns False when timeout elapses without a change.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._changed or self._stopped, timeout)
            if self._stopped or not self._changed:
                return False
            self._changed = False
            return True

    def get_hook_status(self, instance_id: str) -> HookStatus | None:
        with self._statuses_lock:
            return self._statuses.get(instance_id)

    def snapshot(self) -> dict[str, HookStatus]:
        with self._statuses_lock:
            return dict(self._statuses)

    def stop(self) -> None:
        """Stop watching and wake every waiter. Safe to call more than once."""
        with self._cond:
            if self._stopped:
                return
            self._stopped = True
            self._cond.notify_all()
        with self._pending_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()
        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            observer.join(timeout=WATCHER_JOIN_TIMEOUT_S)
        logger.info("StatusFileWatcher: stopped")
