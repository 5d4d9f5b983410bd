"""Unit tests for the TUI reducer."""

from agentdeck.cli.tui.state import Intent, IntentType, TuiState, reduce_state


def test_set_cursor_records_index_and_key() -> None:
    state = TuiState()

    reduce_state(state, Intent(IntentType.SET_CURSOR, {"index": 4, "key": ("session", "s1")}))

    assert state.sessions.cursor == 4
    assert state.sessions.cursor_key == ("session", "s1")


def test_negative_cursor_and_offset_are_ignored() -> None:
    state = TuiState()
    reduce_state(state, Intent(IntentType.SET_CURSOR, {"index": -1}))
    reduce_state(state, Intent(IntentType.SET_VIEW_OFFSET, {"offset": -3}))
    assert state.sessions.cursor == 0
    assert state.sessions.view_offset == 0


def test_toggle_session_selected_requires_bulk_mode() -> None:
    state = TuiState()
    reduce_state(state, Intent(IntentType.TOGGLE_SESSION_SELECTED, {"session_id": "s1"}))
    assert state.sessions.selected_session_ids == set()

    reduce_state(state, Intent(IntentType.TOGGLE_BULK_SELECT))
    reduce_state(state, Intent(IntentType.TOGGLE_SESSION_SELECTED, {"session_id": "s1"}))
    assert state.sessions.selected_session_ids == {"s1"}

    reduce_state(state, Intent(IntentType.TOGGLE_SESSION_SELECTED, {"session_id": "s1"}))
    assert state.sessions.selected_session_ids == set()


def test_leaving_bulk_mode_clears_selection() -> None:
    state = TuiState()
    reduce_state(state, Intent(IntentType.TOGGLE_BULK_SELECT))
    reduce_state(state, Intent(IntentType.TOGGLE_SESSION_SELECTED, {"session_id": "s1"}))

    reduce_state(state, Intent(IntentType.TOGGLE_BULK_SELECT))

    assert state.sessions.bulk_select_mode is False
    assert state.sessions.selected_session_ids == set()


def test_sync_sessions_prunes_selection_and_stale_cursor_key() -> None:
    state = TuiState()
    state.sessions.selected_session_ids = {"s1", "s2"}
    state.sessions.cursor_key = ("session", "s2")

    reduce_state(state, Intent(IntentType.SYNC_SESSIONS, {"session_ids": ["s1"]}))

    assert state.sessions.selected_session_ids == {"s1"}
    assert state.sessions.cursor_key is None


def test_sync_sessions_keeps_group_cursor_key() -> None:
    state = TuiState()
    state.sessions.cursor_key = ("group", "work")

    reduce_state(state, Intent(IntentType.SYNC_SESSIONS, {"session_ids": []}))

    assert state.sessions.cursor_key == ("group", "work")
