"""Hook status files written by agent hook scripts.

Each managed session owns `<hooks_dir>/<session_id>.json`:

    {"status": "running", "session_id": "<agent session id>",
     "event": "PreToolUse", "tool": "claude", "ts": 1700000000}
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from agentdeck.constants import HOOK_FILE_SUFFIX
from agentdeck.core.models import SessionStatus

HOOK_STATUS_TO_SESSION: dict[str, SessionStatus] = {
    "running": SessionStatus.RUNNING,
    "waiting": SessionStatus.WAITING,
    "idle": SessionStatus.IDLE,
    "starting": SessionStatus.STARTING,
    "dead": SessionStatus.ERROR,
    "error": SessionStatus.ERROR,
}

_EVENT_STATUS: dict[str, str] = {
    "SessionStart": "idle",
    "UserPromptSubmit": "running",
    "PreToolUse": "running",
    "PostToolUse": "running",
    "Stop": "waiting",
    "SubagentStop": "running",
    "PermissionRequest": "waiting",
    "SessionEnd": "dead",
}

_WAITING_NOTIFICATIONS = frozenset({"permission_prompt", "elicitation_dialog"})


@dataclass(frozen=True)
class HookStatus:
    """Decoded contents of one hook status file."""

    status: str
    agent_session_id: str = ""
    event: str = ""
    tool: str | None = None
    updated_at: datetime | None = None


def status_for_event(event: str, matcher: str | None = None) -> str | None:
    """Map an agent hook event to a hook status, or None when it carries no status."""
    if event == "Notification":
        return "waiting" if matcher in _WAITING_NOTIFICATIONS else None
    return _EVENT_STATUS.get(event)


def to_session_status(status: str) -> SessionStatus | None:
    return HOOK_STATUS_TO_SESSION.get(status.strip().lower())


def instance_id_for(path: Path) -> str | None:
    """Session id encoded in a hook file name, or None for unrelated files."""
    if path.suffix != HOOK_FILE_SUFFIX or path.name.startswith("."):
        return None
    return path.stem


def parse_hook_file(path: Path) -> HookStatus | None:
    """Read and decode a hook file. Unreadable or malformed files yield None."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Ignoring hook file {}: {}", path, exc)
        return None
    if not isinstance(raw, dict) or not isinstance(raw.get("status"), str):
        logger.debug("Ignoring hook file {}: no status field", path)
        return None

    ts = raw.get("ts")
    updated_at = None
    if isinstance(ts, (int, float)):
        updated_at = datetime.fromtimestamp(ts, tz=timezone.utc)
    tool = raw.get("tool")
    return HookStatus(
        status=raw["status"],
        agent_session_id=str(raw.get("session_id") or ""),
        event=str(raw.get("event") or ""),
        tool=tool if isinstance(tool, str) and tool else None,
        updated_at=updated_at,
    )


def write_hook_status(
    hooks_dir: Path,
    session_id: str,
    status: str,
    *,
    event: str = "",
    agent_session_id: str = "",
    tool: str | None = None,
) -> Path:
    """Atomically write the hook file for session_id.

    The temp file lives in hooks_dir with a dot prefix and a non-json suffix,
    so watchers only ever see the final rename.
    """
    hooks_dir.mkdir(parents=True, exist_ok=True)
    target = hooks_dir / f"{session_id}{HOOK_FILE_SUFFIX}"
    payload: dict[str, object] = {
        "status": status,
        "session_id": agent_session_id,
        "event": event,
        "ts": int(time.time()),
    }
    if tool:
        payload["tool"] = tool

    fd, tmp_name = tempfile.mkstemp(dir=hooks_dir, prefix=f".{session_id}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle)
        os.replace(tmp_name, target)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Wrote hook status {} for {}", status, session_id)
    return target
