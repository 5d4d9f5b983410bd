"""Session and group domain model."""

from __future__ import annotations

import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, Iterable, TypeVar

from agentdeck.constants import GROUP_PATH_SEPARATOR, MAX_NAME_LENGTH
from agentdeck.core.errors import NameValidationError, UnknownToolError

T = TypeVar("T")


class SessionStatus(str, Enum):
    """Live session status pushed by agent hooks."""

    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    ERROR = "error"
    STARTING = "starting"


class Tool(str, Enum):
    """Built-in agent tools. Custom tools are plain strings from config."""

    CLAUDE = "claude"
    GEMINI = "gemini"
    CODEX = "codex"
    AIDER = "aider"
    CURSOR = "cursor"
    SHELL = "shell"
    OPENCODE = "opencode"


BUILTIN_TOOLS: frozenset[str] = frozenset(t.value for t in Tool)


class LockedValue(Generic[T]):
    """A value shared between the UI loop and background threads.

    Only synchronized `get` and `set` are exposed, so a reader never
    observes a half-applied write.
    """

    __slots__ = ("_lock", "_value")

    def __init__(self, value: T) -> None:
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> bool:
        """Store value. Returns True when it differs from the previous one."""
        with self._lock:
            changed = self._value != value
            self._value = value
            return changed

    def __repr__(self) -> str:
        return f"LockedValue({self.get()!r})"


def new_session_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class Session:
    """One managed agent process and its terminal pane.

    `status` and `tool` may be written by the status synchronizer thread;
    everything else is owned by the UI loop.
    """

    session_id: str
    title: str
    group_path: str = ""
    parent_session_id: str | None = None
    tool: LockedValue[str] = field(default_factory=lambda: LockedValue(Tool.CLAUDE.value))
    status: LockedValue[SessionStatus] = field(default_factory=lambda: LockedValue(SessionStatus.IDLE))
    project_path: str = ""
    worktree_path: str | None = None
    command: str = ""
    yolo_mode: bool = False
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_sub_session(self) -> bool:
        return self.parent_session_id is not None

    def is_worktree(self) -> bool:
        """PR lookups only make sense for sessions backed by their own checkout."""
        return bool(self.worktree_path)


@dataclass(eq=False)
class Group:
    """A named container of sessions addressed by a slash-delimited path."""

    path: str
    name: str
    expanded: bool = True
    sessions: list[str] = field(default_factory=list)

    @property
    def level(self) -> int:
        return self.path.count(GROUP_PATH_SEPARATOR)

    @property
    def parent_path(self) -> str:
        return parent_path_of(self.path)


def parent_path_of(path: str) -> str:
    """Path minus its last segment; "" for root groups."""
    head, sep, _ = path.rpartition(GROUP_PATH_SEPARATOR)
    return head if sep else ""


def is_descendant_path(path: str, ancestor: str) -> bool:
    """True when path equals ancestor or lies below it. "" is everyone's ancestor."""
    if not ancestor:
        return True
    return path == ancestor or path.startswith(ancestor + GROUP_PATH_SEPARATOR)


_SLUG_INVALID = re.compile(r"[^a-z0-9._-]+")


def slugify(name: str) -> str:
    """Turn a display name into a single path segment."""
    slug = _SLUG_INVALID.sub("-", name.strip().lower()).strip("-")
    return slug


def make_group_path(parent_path: str, name: str) -> str:
    """Path for a new group called name under parent_path ("" for a root group)."""
    segment = slugify(name)
    if not parent_path:
        return segment
    return f"{parent_path}{GROUP_PATH_SEPARATOR}{segment}"


def validate_name(name: str, *, kind: str = "Name") -> str:
    """Return the stripped name or raise NameValidationError."""
    cleaned = name.strip()
    if not cleaned:
        raise NameValidationError(f"{kind} cannot be empty")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise NameValidationError(f"{kind} too long (max {MAX_NAME_LENGTH} characters)")
    return cleaned


def validate_tool(tool: str, custom_tools: Iterable[str] = ()) -> str:
    normalized = tool.strip().lower()
    if normalized in BUILTIN_TOOLS or normalized in set(custom_tools):
        return normalized
    raise UnknownToolError(tool)
