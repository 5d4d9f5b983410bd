"""Exception hierarchy for agentdeck: store, watcher, storage and config errors."""

from __future__ import annotations


class DeckError(Exception):
    """Base class for agentdeck errors."""


class StoreError(DeckError):
    """A store mutation was rejected; the store is unchanged."""


class PathConflictError(StoreError):
    """A group with this path already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Group already exists: {path}")
        self.path = path


class InvalidPathError(StoreError):
    """Malformed group path, or its parent group does not exist."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid group path {path!r}: {reason}")
        self.path = path
        self.reason = reason


class InvalidGroupError(InvalidPathError):
    """A session references a group that does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "group does not exist")


class NotFoundError(StoreError):
    """Fork, delete or lookup target is missing."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class GroupNotEmptyError(StoreError):
    """Group still owns sessions or subgroups and cascade was not requested."""

    def __init__(self, path: str, sessions: int, subgroups: int) -> None:
        super().__init__(f"Group {path!r} is not empty ({sessions} sessions, {subgroups} subgroups)")
        self.path = path
        self.sessions = sessions
        self.subgroups = subgroups


class NameValidationError(StoreError):
    """Empty, over-length or otherwise unusable name. Shown inline, never fatal."""


class UnknownToolError(NameValidationError):
    """Tool identifier is neither built in nor declared in config."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Unknown tool: {tool}")
        self.tool = tool


class WatchUnavailableError(DeckError):
    """The hook status watcher could not be established."""


class StorageError(DeckError):
    """The persisted store file could not be read or parsed."""


class ConfigError(DeckError):
    """The config file holds values the schema rejects."""
