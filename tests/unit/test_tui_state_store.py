"""Unit tests for TUI state persistence helpers."""

from __future__ import annotations

from agentdeck.cli.tui import state_store
from agentdeck.cli.tui.state import TuiState


def test_save_and_load_round_trip_session_cursor(tmp_path) -> None:
    path = tmp_path / "ui_state.json"
    state = TuiState()
    state.sessions.cursor_key = ("session", "sess-1")

    state_store.save_ui_state(state, path)
    loaded = TuiState()
    state_store.load_ui_state(loaded, path)

    assert loaded.sessions.cursor_key == ("session", "sess-1")


def test_save_and_load_round_trip_group_cursor(tmp_path) -> None:
    path = tmp_path / "ui_state.json"
    state = TuiState()
    state.sessions.cursor_key = ("group", "work/api")

    state_store.save_ui_state(state, path)
    loaded = TuiState()
    state_store.load_ui_state(loaded, path)

    assert loaded.sessions.cursor_key == ("group", "work/api")


def test_load_missing_file_keeps_defaults(tmp_path) -> None:
    state = TuiState()
    state_store.load_ui_state(state, tmp_path / "missing.json")
    assert state.sessions.cursor_key is None


def test_load_corrupt_file_is_ignored(tmp_path) -> None:
    path = tmp_path / "ui_state.json"
    path.write_text("[1, 2", encoding="utf-8")
    state = TuiState()

    state_store.load_ui_state(state, path)

    assert state.sessions.cursor_key is None


def test_save_failure_is_swallowed(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    state = TuiState()
    state.sessions.cursor_key = ("session", "s")

    state_store.save_ui_state(state, blocker / "ui_state.json")

    assert blocker.read_text(encoding="utf-8") == "x"
