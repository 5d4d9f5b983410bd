"""Cursor and scroll management for the flattened session list.

After every move or rebuild with a non-empty list the controller guarantees
`view_offset <= cursor < view_offset + visible_count`. It scrolls the view to
follow the cursor rather than clamping the cursor to the view.
"""

from __future__ import annotations

from typing import Iterable

from agentdeck.cli.tui.projector import Item, ItemKey
from agentdeck.cli.tui.state import Intent, IntentType, TuiState, reduce_state
from agentdeck.cli.tui.types import ItemType


def _nearest_survivor(previous: list[Item], cursor: int, positions: dict[ItemKey, int]) -> int | None:
    """New index of the closest row around cursor in previous that still exists."""
    for distance in range(len(previous)):
        for index in (cursor + distance, cursor - distance):
            if 0 <= index < len(previous):
                found = positions.get(previous[index].key)
                if found is not None:
                    return found
    return None


class ViewportController:
    """Owns cursor/scroll math over the latest projected items."""

    def __init__(self, state: TuiState, visible_count: int = 1) -> None:
        self.state = state
        self.visible_count = max(1, visible_count)
        self._items: list[Item] = []

    @property
    def items(self) -> list[Item]:
        return self._items

    @property
    def cursor(self) -> int:
        return self.state.sessions.cursor

    @property
    def view_offset(self) -> int:
        return self.state.sessions.view_offset

    @property
    def selected_item(self) -> Item | None:
        if not self._items:
            return None
        return self._items[self.cursor]

    def visible_range(self) -> tuple[int, int]:
        """Half-open index range of the rows currently on screen."""
        start = self.view_offset
        return start, min(len(self._items), start + self.visible_count)

    def rebuild(self, items: list[Item]) -> None:
        """Adopt a new projection, keeping the cursor on the same row identity if possible.

        When that row is gone the cursor lands on its nearest surviving
        neighbour in the previous list, following rows first.
        """
        previous = self._items
        self._items = items
        if not items:
            reduce_state(self.state, Intent(IntentType.SET_CURSOR, {"index": 0, "key": None}))
            reduce_state(self.state, Intent(IntentType.SET_VIEW_OFFSET, {"offset": 0}))
            return

        positions = {item.key: item.index for item in items}
        target = None
        key = self.state.sessions.cursor_key
        if key is not None:
            target = positions.get(key)
        if target is None:
            target = _nearest_survivor(previous, self.cursor, positions)
        if target is None:
            target = self.cursor
        self._set_cursor(target)

    def _set_cursor(self, index: int) -> None:
        if not self._items:
            return
        index = max(0, min(index, len(self._items) - 1))
        reduce_state(self.state, Intent(IntentType.SET_CURSOR, {"index": index, "key": self._items[index].key}))
        self._ensure_visible()

    def _ensure_visible(self) -> None:
        cursor = self.cursor
        offset = self.view_offset
        if cursor < offset:
            offset = cursor
        elif cursor >= offset + self.visible_count:
            offset = cursor - self.visible_count + 1
        # Avoid trailing blank rows once the list shrinks
        offset = max(0, min(offset, len(self._items) - self.visible_count))
        if offset != self.view_offset:
            reduce_state(self.state, Intent(IntentType.SET_VIEW_OFFSET, {"offset": offset}))

    def set_visible_count(self, count: int) -> None:
        self.visible_count = max(1, count)
        if self._items:
            self._ensure_visible()

    def move_up(self, n: int = 1) -> None:
        self._set_cursor(self.cursor - n)

    def move_down(self, n: int = 1) -> None:
        self._set_cursor(self.cursor + n)

    def page_up(self) -> None:
        self.move_up(self.visible_count)

    def page_down(self) -> None:
        self.move_down(self.visible_count)

    def home(self) -> None:
        self._set_cursor(0)

    def end(self) -> None:
        self._set_cursor(len(self._items) - 1)

    def select_key(self, key: ItemKey) -> bool:
        """Put the cursor on the row with this identity. Returns False if absent."""
        for item in self._items:
            if item.key == key:
                self._set_cursor(item.index)
                return True
        return False

    def jump_to_root_group(self, number: int) -> bool:
        for item in self._items:
            if item.type is ItemType.GROUP and item.root_group_num == number:
                self._set_cursor(item.index)
                return True
        return False

    def toggle_bulk_select(self) -> bool:
        """Enter or leave bulk-select mode. Leaving clears the selection."""
        reduce_state(self.state, Intent(IntentType.TOGGLE_BULK_SELECT))
        return self.state.sessions.bulk_select_mode

    def toggle_selected(self) -> bool:
        """Flip selection of the session under the cursor. Groups are not selectable."""
        item = self.selected_item
        if item is None or item.session is None or not self.state.sessions.bulk_select_mode:
            return False
        reduce_state(self.state, Intent(IntentType.TOGGLE_SESSION_SELECTED, {"session_id": item.session.session_id}))
        return True

    def clear_selection(self) -> None:
        reduce_state(self.state, Intent(IntentType.CLEAR_SELECTION))

    def prune(self, session_ids: Iterable[str]) -> None:
        """Drop selection entries for sessions that no longer exist."""
        reduce_state(self.state, Intent(IntentType.SYNC_SESSIONS, {"session_ids": list(session_ids)}))
