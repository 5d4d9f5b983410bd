"""JSON persistence for the session/group tree."""

from __future__ import annotations

import fcntl
import json
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from loguru import logger

from agentdeck.core.errors import StorageError, StoreError
from agentdeck.core.group_tree import GroupTree
from agentdeck.core.models import Group, LockedValue, Session, SessionStatus


def _session_to_dict(session: Session) -> dict[str, Any]:
    return {
        "id": session.session_id,
        "title": session.title,
        "group_path": session.group_path,
        "parent_session_id": session.parent_session_id,
        "tool": session.tool.get(),
        "status": session.status.get().value,
        "project_path": session.project_path,
        "worktree_path": session.worktree_path,
        "command": session.command,
        "yolo_mode": session.yolo_mode,
        "created_at": session.created_at.isoformat(),
    }


def _session_from_dict(data: dict[str, Any]) -> Session:
    try:
        status = SessionStatus(data.get("status") or SessionStatus.IDLE.value)
    except ValueError:
        status = SessionStatus.IDLE
    created_raw = data.get("created_at")
    created_at = datetime.fromisoformat(created_raw) if created_raw else datetime.now(timezone.utc)
    return Session(
        session_id=str(data["id"]),
        title=str(data["title"]),
        group_path=str(data.get("group_path") or ""),
        parent_session_id=data.get("parent_session_id") or None,
        tool=LockedValue(str(data.get("tool") or "claude")),
        status=LockedValue(status),
        project_path=str(data.get("project_path") or ""),
        worktree_path=data.get("worktree_path") or None,
        command=str(data.get("command") or ""),
        yolo_mode=bool(data.get("yolo_mode", False)),
        created_at=created_at,
    )


def ordered_session_ids(tree: GroupTree) -> Iterator[str]:
    """Session ids group by group (ascending path), ungrouped last, in stored order."""
    for path in sorted(tree.groups):
        yield from tree.groups[path].sessions
    yield from tree.root_sessions


@contextmanager
def _locked(path: Path) -> Iterator[None]:
    lock_path = path.with_suffix(".lock")
    with open(lock_path, "w", encoding="utf-8") as lock_file:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


class SessionStorage:
    """Loads and saves a GroupTree as `{"instances": [...], "groups": [...]}`."""

    def __init__(self, path: Path, custom_tools: Iterable[str] = ()) -> None:
        self.path = path
        self.custom_tools = tuple(custom_tools)
        # (mtime_ns, size) of the file as last loaded or saved by this instance
        self._disk_stamp: tuple[int, int] | None = None

    def _stamp(self) -> tuple[int, int] | None:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot stat {self.path}: {e}") from e
        return st.st_mtime_ns, st.st_size

    def changed_on_disk(self) -> bool:
        """True when the file differs from what this instance last loaded or saved."""
        return self._stamp() != self._disk_stamp

    def load(self) -> GroupTree:
        """Read the store file. A missing file yields an empty tree."""
        tree = GroupTree(custom_tools=self.custom_tools)
        stamp = self._stamp()
        if stamp is None:
            self._disk_stamp = None
            logger.debug("No session store at {}, starting empty", self.path)
            return tree

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected store format in {self.path}")

        try:
            groups = [
                Group(path=str(g["path"]), name=str(g["name"]), expanded=bool(g.get("expanded", True)))
                for g in data.get("groups", [])
            ]
            # Parents before children
            for group in sorted(groups, key=lambda g: (g.level, g.path)):
                tree.add_group(group)

            for raw in data.get("instances", []):
                session = _session_from_dict(raw)
                if session.group_path and session.group_path not in tree.groups:
                    logger.warning("Session {} references missing group {}, ungrouping", session.session_id, session.group_path)
                    session.group_path = ""
                tree.add_session(session)
        except (KeyError, TypeError, ValueError, StoreError) as e:
            raise StorageError(f"Corrupt session store {self.path}: {e}") from e

        self._disk_stamp = stamp
        logger.info("Loaded {} groups and {} sessions from {}", len(tree.groups), len(tree.sessions), self.path)
        return tree

    def save(self, tree: GroupTree) -> None:
        """Atomically write tree to disk."""
        payload = {
            "instances": [_session_to_dict(tree.sessions[sid]) for sid in ordered_session_ids(tree)],
            "groups": [
                {"path": g.path, "name": g.name, "expanded": g.expanded}
                for g in sorted(tree.groups.values(), key=lambda g: g.path)
            ],
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with _locked(self.path):
                tmp_path = self.path.with_suffix(".tmp")
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
                self._disk_stamp = self._stamp()
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

        logger.debug("Saved {} sessions to {}", len(payload["instances"]), self.path)
