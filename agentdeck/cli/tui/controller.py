"""TUI controller: store mutations, projection and viewport in one place.

All methods run on the UI thread. Background threads reach the controller only
through the inbox queue drained by `drain`.
"""

from __future__ import annotations

import queue
from pathlib import Path

from loguru import logger

from agentdeck.cli.tui.projector import Item, ListProjector
from agentdeck.cli.tui.state import TuiState
from agentdeck.cli.tui.state_store import load_ui_state, save_ui_state
from agentdeck.cli.tui.types import ItemType
from agentdeck.cli.tui.viewport import ViewportController
from agentdeck.core.errors import StorageError
from agentdeck.core.group_tree import GroupTree
from agentdeck.core.messages import StatusChanged, StoreChanged, UiMessage
from agentdeck.core.models import Group, Session, make_group_path
from agentdeck.core.pr_cache import PRCache
from agentdeck.core.status_sync import StatusSynchronizer
from agentdeck.core.storage import SessionStorage
from agentdeck.core.store_watcher import StoreFileWatcher


class DeckController:
    """Central controller for the session list."""

    def __init__(
        self,
        tree: GroupTree,
        synchronizer: StatusSynchronizer,
        *,
        storage: SessionStorage | None = None,
        store_watcher: StoreFileWatcher | None = None,
        state: TuiState | None = None,
        pr_cache: PRCache | None = None,
        default_tool: str = "claude",
        ui_state_path: Path | None = None,
        visible_count: int = 1,
    ) -> None:
        self.tree = tree
        self.synchronizer = synchronizer
        self.storage = storage
        self.store_watcher = store_watcher
        self.state = state or TuiState()
        self.pr_cache = pr_cache or PRCache()
        self.default_tool = default_tool
        self._ui_state_path = ui_state_path
        self.projector = ListProjector()
        self.viewport = ViewportController(self.state, visible_count)
        self._closed = False

        if ui_state_path is not None:
            load_ui_state(self.state, ui_state_path)
        self.synchronizer.sync_tracked(self.tree.sessions.values())
        self.refresh()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def items(self) -> list[Item]:
        return self.viewport.items

    @property
    def selected_item(self) -> Item | None:
        return self.viewport.selected_item

    def refresh(self) -> None:
        """Re-project the tree and re-resolve the cursor."""
        view = self.state.sessions
        items = self.projector.project(
            self.tree,
            bulk_select_mode=view.bulk_select_mode,
            selected_session_ids=view.selected_session_ids,
        )
        self.viewport.rebuild(items)

    def handle_message(self, message: UiMessage) -> bool:
        """Apply one background message. Returns True when a redraw is needed."""
        if self._closed:
            return False
        if isinstance(message, StoreChanged):
            return self.reload_if_changed()
        # Statuses live in LockedValue cells already; rows read them at draw time
        return isinstance(message, StatusChanged)

    def reload_if_changed(self) -> bool:
        """Re-read the store when another process wrote it. Returns True on reload.

        Our own saves leave the storage's stamp current and are skipped.
        """
        if self.storage is None:
            return False
        try:
            if not self.storage.changed_on_disk():
                return False
            fresh = self.storage.load()
        except StorageError as e:
            logger.error("Failed to reload sessions: {}", e)
            return False
        self.tree.replace_with(fresh)
        self.synchronizer.sync_tracked(self.tree.sessions.values())
        self.viewport.prune(self.tree.sessions)
        logger.info("Reloaded {} sessions changed outside the panel", len(self.tree.sessions))
        return True

    def _sync_from_disk(self) -> None:
        # Mutations start from the latest store so outside writes survive our save
        if self.reload_if_changed():
            self.refresh()

    def drain(self, inbox: queue.Queue[UiMessage]) -> bool:
        """Consume every pending message and rebuild at most once."""
        dirty = False
        while True:
            try:
                message = inbox.get_nowait()
            except queue.Empty:
                break
            dirty = self.handle_message(message) or dirty
        if dirty:
            self.refresh()
        return dirty

    def _after_mutation(self) -> None:
        self.synchronizer.sync_tracked(self.tree.sessions.values())
        self.viewport.prune(self.tree.sessions)
        self.refresh()
        self.save()

    def save(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save(self.tree)
        except StorageError as e:
            logger.error("Failed to save sessions: {}", e)

    def _target_group_path(self) -> str:
        item = self.selected_item
        if item is None:
            return ""
        return item.path

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def create_group(self, name: str, *, as_subgroup: bool = True) -> Group:
        """Create a group nested under the group of the selected row.

        The selected row may be a group or a session; ungrouped sessions and
        `as_subgroup=False` give a root group.
        """
        self._sync_from_disk()
        item = self.selected_item
        parent = item.path if as_subgroup and item is not None else ""
        group = self.tree.create_group(make_group_path(parent, name), name)
        if parent:
            self.tree.set_expanded(parent, True)
        self._after_mutation()
        self.viewport.select_key(("group", group.path))
        return group

    def create_session(self, title: str, *, tool: str | None = None, project_path: str = "") -> Session:
        """Create a session in the group under the cursor."""
        self._sync_from_disk()
        group_path = self._target_group_path()
        session = self.tree.create_session(group_path, title, tool or self.default_tool, project_path=project_path)
        if group_path:
            self.tree.set_expanded(group_path, True)
        self._after_mutation()
        self.viewport.select_key(("session", session.session_id))
        return session

    def fork_selected(self, title: str) -> Session | None:
        self._sync_from_disk()
        item = self.selected_item
        if item is None or item.session is None:
            return None
        fork = self.tree.fork_session(item.session.session_id, title)
        self._after_mutation()
        self.viewport.select_key(("session", fork.session_id))
        return fork

    def delete_selected(self, *, cascade: bool = False) -> bool:
        """Delete the session or group under the cursor."""
        self._sync_from_disk()
        item = self.selected_item
        if item is None:
            return False
        if item.type is ItemType.GROUP:
            self.tree.delete_group(item.path, cascade=cascade)
        else:
            assert item.session is not None
            self.tree.delete_session(item.session.session_id)
        self._after_mutation()
        return True

    def delete_bulk_selection(self) -> int:
        """Delete every selected session. Returns how many were removed."""
        self._sync_from_disk()
        removed = 0
        for session_id in sorted(self.state.sessions.selected_session_ids):
            if session_id in self.tree.sessions:
                self.tree.delete_session(session_id)
                removed += 1
        self.viewport.clear_selection()
        self._after_mutation()
        return removed

    def toggle_group(self) -> bool:
        self._sync_from_disk()
        item = self.selected_item
        if item is None or item.type is not ItemType.GROUP:
            return False
        self.tree.toggle_expanded(item.path)
        self.refresh()
        self.save()
        return True

    def set_group_expanded(self, expanded: bool) -> bool:
        self._sync_from_disk()
        item = self.selected_item
        if item is None or item.type is not ItemType.GROUP:
            return False
        self.tree.set_expanded(item.path, expanded)
        self.refresh()
        self.save()
        return True

    def toggle_bulk_select(self) -> bool:
        enabled = self.viewport.toggle_bulk_select()
        self.refresh()
        return enabled

    def toggle_selected(self) -> bool:
        toggled = self.viewport.toggle_selected()
        if toggled:
            self.refresh()
        return toggled

    def close(self) -> None:
        """Stop background watchers and persist UI state. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.synchronizer.stop()
        if self.store_watcher is not None:
            self.store_watcher.stop()
        if self._ui_state_path is not None:
            save_ui_state(self.state, self._ui_state_path)
        logger.info("Controller closed")
