"""TUI state model and reducer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TypedDict, cast

from loguru import logger

from agentdeck.cli.tui.projector import ItemKey


@dataclass
class ListViewState:
    """Cursor, scroll and selection state for the session list."""

    cursor: int = 0
    view_offset: int = 0
    cursor_key: ItemKey | None = None
    bulk_select_mode: bool = False
    selected_session_ids: set[str] = field(default_factory=set)


@dataclass
class TuiState:
    """Shared state for the TUI."""

    sessions: ListViewState = field(default_factory=ListViewState)


class IntentType(str, Enum):
    """Intent identifiers for reducer-driven state updates."""

    SET_CURSOR = "set_cursor"
    SET_VIEW_OFFSET = "set_view_offset"
    TOGGLE_BULK_SELECT = "toggle_bulk_select"
    TOGGLE_SESSION_SELECTED = "toggle_session_selected"
    CLEAR_SELECTION = "clear_selection"
    SYNC_SESSIONS = "sync_sessions"


class IntentPayload(TypedDict, total=False):
    index: int
    key: ItemKey | None
    offset: int
    session_id: str
    session_ids: list[str]


@dataclass(frozen=True)
class Intent:
    """State transition request."""

    type: IntentType
    payload: IntentPayload = field(default_factory=lambda: cast(IntentPayload, {}))


def reduce_state(state: TuiState, intent: Intent) -> None:
    """Apply intent to state (pure state mutation only)."""
    t = intent.type
    p = intent.payload
    view = state.sessions

    if t is IntentType.SET_CURSOR:
        idx = p.get("index")
        if isinstance(idx, int) and idx >= 0:
            view.cursor = idx
            view.cursor_key = p.get("key")
        return

    if t is IntentType.SET_VIEW_OFFSET:
        offset = p.get("offset")
        if isinstance(offset, int) and offset >= 0:
            view.view_offset = offset
        return

    if t is IntentType.TOGGLE_BULK_SELECT:
        view.bulk_select_mode = not view.bulk_select_mode
        if not view.bulk_select_mode:
            view.selected_session_ids.clear()
        return

    if t is IntentType.TOGGLE_SESSION_SELECTED:
        session_id = p.get("session_id")
        if not session_id or not view.bulk_select_mode:
            return
        if session_id in view.selected_session_ids:
            view.selected_session_ids.discard(session_id)
        else:
            view.selected_session_ids.add(session_id)
        return

    if t is IntentType.CLEAR_SELECTION:
        view.selected_session_ids.clear()
        return

    if t is IntentType.SYNC_SESSIONS:
        session_ids = set(p.get("session_ids", []))
        pruned = view.selected_session_ids - session_ids
        if pruned:
            logger.debug("Selection pruned by SYNC_SESSIONS: {}", sorted(s[:8] for s in pruned))
        view.selected_session_ids.intersection_update(session_ids)
        if view.cursor_key and view.cursor_key[0] == "session" and view.cursor_key[1] not in session_ids:
            view.cursor_key = None
        return
