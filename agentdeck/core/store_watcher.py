"""Filesystem watcher for the session store file.

The CLI and the panel share one sessions.json. This watcher lets a running
panel notice writes made by other processes: it watches the store's directory
(atomic saves replace the file, so watching the file itself loses track of it),
debounces bursts and posts StoreChanged into the UI inbox. Telling its own
saves apart from outside ones is left to SessionStorage.changed_on_disk.
"""

from __future__ import annotations

import queue
import threading
from pathlib import Path

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from agentdeck.constants import STORE_DEBOUNCE_S, WATCHER_JOIN_TIMEOUT_S
from agentdeck.core.errors import WatchUnavailableError
from agentdeck.core.messages import StoreChanged, UiMessage


class _StoreFileHandler(FileSystemEventHandler):
    """Forwards events for exactly the store file; siblings like .tmp and .lock are ignored."""

    def __init__(self, watcher: StoreFileWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def _handle(self, path: object) -> None:
        if isinstance(path, bytes):
            path = path.decode()
        if not isinstance(path, str):
            return
        if Path(path).resolve() == self._watcher.path:
            self._watcher.schedule()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.dest_path)


class StoreFileWatcher:
    """Posts one StoreChanged per debounced burst of writes to the store file."""

    def __init__(self, path: Path, outbox: queue.Queue[UiMessage], debounce_s: float = STORE_DEBOUNCE_S) -> None:
        self.path = path.resolve()
        self.debounce_s = debounce_s
        self._outbox = outbox
        self._observer: Observer | None = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._stopped = False

    def start(self) -> None:
        """Begin watching. Raises WatchUnavailableError if the watch cannot be set up."""
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            observer = Observer()
            observer.daemon = True
            observer.schedule(_StoreFileHandler(self), str(directory), recursive=False)
            observer.start()
        except (OSError, RuntimeError) as exc:
            raise WatchUnavailableError(f"Cannot watch {directory}: {exc}") from exc
        self._observer = observer
        logger.info("StoreFileWatcher: watching {}", self.path)

    def schedule(self) -> None:
        """Restart the debounce timer."""
        with self._lock:
            if self._stopped:
                return
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.debounce_s, self._flush)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _flush(self) -> None:
        with self._lock:
            self._timer = None
            if self._stopped:
                return
        logger.debug("Session store touched: {}", self.path)
        self._outbox.put(StoreChanged())

    def stop(self) -> None:
        """Stop watching. Safe to call more than once."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            observer.join(timeout=WATCHER_JOIN_TIMEOUT_S)
        logger.info("StoreFileWatcher: stopped")


def start_store_watch(path: Path, outbox: queue.Queue[UiMessage]) -> StoreFileWatcher | None:
    """Build and start a store watcher; None when watching is unavailable."""
    watcher = StoreFileWatcher(path, outbox)
    try:
        watcher.start()
    except WatchUnavailableError as exc:
        logger.warning("Store reload on outside changes disabled: {}", exc)
        return None
    return watcher
