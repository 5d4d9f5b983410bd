"""Persistence helpers for TUI state."""

from __future__ import annotations

import fcntl
import json
import os
from pathlib import Path

from loguru import logger

from agentdeck.cli.tui.state import TuiState
from agentdeck.paths import UI_STATE_PATH


def load_ui_state(state: TuiState, path: Path = UI_STATE_PATH) -> None:
    """Restore the cursor identity from ~/.agentdeck/ui_state.json."""
    if not path.exists():
        logger.debug("No UI state file found, starting at the top")
        return

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        session_id = data.get("cursor_session_id")
        group_path = data.get("cursor_group_path")
        if isinstance(session_id, str) and session_id:
            state.sessions.cursor_key = ("session", session_id)
        elif isinstance(group_path, str) and group_path:
            state.sessions.cursor_key = ("group", group_path)
        logger.info("Loaded UI state: cursor={}", state.sessions.cursor_key)
    except (json.JSONDecodeError, AttributeError, TypeError, OSError) as e:
        logger.warning("Failed to load UI state from {}: {}", path, e)
        state.sessions.cursor_key = None


def save_ui_state(state: TuiState, path: Path = UI_STATE_PATH) -> None:
    """Save the cursor identity. Failures are logged and otherwise ignored."""
    key = state.sessions.cursor_key
    state_data = {
        "cursor_session_id": key[1] if key and key[0] == "session" else None,
        "cursor_group_path": key[1] if key and key[0] == "group" else None,
    }

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.with_suffix(".lock")
        with open(lock_path, "w", encoding="utf-8") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            tmp_path = path.with_suffix(".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(state_data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
    except OSError as e:
        logger.error("Failed to save UI state to {}: {}", path, e)
        return

    logger.debug("Saved UI state to {}", path)
