"""Session/group store.

Owns every Group and Session, enforces the hierarchy rules and exposes
recursive counts. Mutated only from the UI loop; background threads touch
sessions exclusively through their LockedValue cells.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from loguru import logger

from agentdeck.constants import GROUP_PATH_SEPARATOR
from agentdeck.core.errors import (
    GroupNotEmptyError,
    InvalidGroupError,
    InvalidPathError,
    NotFoundError,
    PathConflictError,
    StoreError,
)
from agentdeck.core.models import (
    Group,
    Session,
    SessionStatus,
    Tool,
    is_descendant_path,
    new_session_id,
    parent_path_of,
    validate_name,
    validate_tool,
)


def check_group_path(path: str) -> None:
    """Raise InvalidPathError for empty paths, stray separators or empty segments."""
    if not path:
        raise InvalidPathError(path, "path is empty")
    if path.startswith(GROUP_PATH_SEPARATOR) or path.endswith(GROUP_PATH_SEPARATOR):
        raise InvalidPathError(path, "leading or trailing separator")
    if any(not segment.strip() for segment in path.split(GROUP_PATH_SEPARATOR)):
        raise InvalidPathError(path, "empty segment")


class GroupTree:
    """In-memory tree of groups and sessions."""

    def __init__(self, custom_tools: Iterable[str] = ()) -> None:
        self.groups: dict[str, Group] = {}
        self.sessions: dict[str, Session] = {}
        self.root_sessions: list[str] = []
        self.custom_tools: tuple[str, ...] = tuple(custom_tools)
        self._version = 0
        self._count_cache: dict[str, int] = {}
        self._count_cache_version = -1

    @property
    def version(self) -> int:
        return self._version

    def _bump(self) -> None:
        self._version += 1

    def replace_with(self, other: GroupTree) -> None:
        """Adopt other's contents in place, keeping this object's identity."""
        self.groups = other.groups
        self.sessions = other.sessions
        self.root_sessions = other.root_sessions
        self.custom_tools = other.custom_tools
        self._bump()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_group(self, path: str) -> Group:
        group = self.groups.get(path)
        if group is None:
            raise NotFoundError("Group", path)
        return group

    def get_session(self, session_id: str) -> Session:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError("Session", session_id)
        return session

    def sessions_in(self, path: str) -> list[str]:
        """Ordered direct session ids of a group; "" is the ungrouped root."""
        if not path:
            return self.root_sessions
        return self.get_group(path).sessions

    def root_groups(self) -> list[Group]:
        return sorted((g for g in self.groups.values() if not g.parent_path), key=lambda g: g.path)

    def children_of(self, path: str) -> list[Group]:
        """Direct subgroups of path, ascending by path."""
        return sorted((g for g in self.groups.values() if g.parent_path == path and g.path), key=lambda g: g.path)

    def forks_of(self, session_id: str) -> list[Session]:
        """Sub-sessions of session_id in their group's stored order."""
        parent = self.sessions.get(session_id)
        if parent is None:
            return []
        return [
            self.sessions[sid]
            for sid in self.sessions_in(parent.group_path)
            if self.sessions[sid].parent_session_id == session_id
        ]

    def owner_session(self, session: Session) -> Session | None:
        """Display parent of a fork, or None when the session sits directly in its group.

        Loaded data may contain fork chains; those resolve to the top-level
        ancestor within the same group. Cycles and cross-group parents are
        treated as direct sessions.
        """
        owner: Session | None = None
        seen = {session.session_id}
        current = session
        while current.parent_session_id is not None:
            parent = self.sessions.get(current.parent_session_id)
            if parent is None or parent.group_path != session.group_path:
                break
            if parent.session_id in seen:
                return None
            seen.add(parent.session_id)
            owner = current = parent
        return owner

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    def recursive_session_count(self, path: str) -> int:
        """Number of sessions in path and every group below it.

        Collapsed groups still count. "" counts every session in the store.
        """
        if self._count_cache_version != self._version:
            self._count_cache.clear()
            self._count_cache_version = self._version
        cached = self._count_cache.get(path)
        if cached is not None:
            return cached

        if not path:
            total = len(self.sessions)
        else:
            total = sum(len(g.sessions) for g in self.groups.values() if is_descendant_path(g.path, path))
        self._count_cache[path] = total
        return total

    def recursive_status_counts(self, path: str) -> Counter[SessionStatus]:
        """Per-status session counts over the same scope as recursive_session_count."""
        counts: Counter[SessionStatus] = Counter()
        for session in self.sessions.values():
            if is_descendant_path(session.group_path, path):
                counts[session.status.get()] += 1
        return counts

    # ------------------------------------------------------------------
    # Group mutations
    # ------------------------------------------------------------------

    def create_group(self, path: str, name: str) -> Group:
        """Create a group at path.

        Args:
            path: Slash-delimited group path. Its parent must already exist.
            name: Display name.

        Returns:
            The new group.
        """
        check_group_path(path)
        clean_name = validate_name(name, kind="Group name")
        if path in self.groups:
            raise PathConflictError(path)
        parent = parent_path_of(path)
        if parent and parent not in self.groups:
            raise InvalidPathError(path, f"parent group {parent!r} does not exist")

        group = Group(path=path, name=clean_name)
        self.groups[path] = group
        self._bump()
        logger.debug("Created group {}", path)
        return group

    def add_group(self, group: Group) -> Group:
        """Register a pre-built group (used when loading from storage)."""
        check_group_path(group.path)
        validate_name(group.name, kind="Group name")
        if group.path in self.groups:
            raise PathConflictError(group.path)
        parent = parent_path_of(group.path)
        if parent and parent not in self.groups:
            raise InvalidPathError(group.path, f"parent group {parent!r} does not exist")
        group.sessions = []
        self.groups[group.path] = group
        self._bump()
        return group

    def set_expanded(self, path: str, expanded: bool) -> None:
        group = self.get_group(path)
        if group.expanded != expanded:
            group.expanded = expanded
            self._bump()

    def toggle_expanded(self, path: str) -> bool:
        """Flip a group's expansion and return the new value."""
        group = self.get_group(path)
        group.expanded = not group.expanded
        self._bump()
        return group.expanded

    def rename_group(self, path: str, name: str) -> None:
        group = self.get_group(path)
        group.name = validate_name(name, kind="Group name")
        self._bump()

    def delete_group(self, path: str, *, cascade: bool = False) -> list[str]:
        """Delete a group.

        Args:
            path: Group to delete.
            cascade: Also remove descendant groups and all their sessions.

        Returns:
            Ids of the sessions removed along with the group.
        """
        group = self.get_group(path)
        descendants = [g for g in self.groups.values() if g.path != path and is_descendant_path(g.path, path)]
        if not cascade and (group.sessions or descendants):
            raise GroupNotEmptyError(path, len(group.sessions), len(descendants))

        removed: list[str] = []
        for doomed in [group, *descendants]:
            removed.extend(doomed.sessions)
            for session_id in doomed.sessions:
                del self.sessions[session_id]
            del self.groups[doomed.path]
        self._bump()
        logger.info("Deleted group {} ({} sessions)", path, len(removed))
        return removed

    # ------------------------------------------------------------------
    # Session mutations
    # ------------------------------------------------------------------

    def _require_group(self, group_path: str) -> None:
        if group_path and group_path not in self.groups:
            raise InvalidGroupError(group_path)

    def create_session(
        self,
        group_path: str,
        title: str,
        tool: str = Tool.CLAUDE.value,
        *,
        project_path: str = "",
        worktree_path: str | None = None,
        command: str = "",
        yolo_mode: bool = False,
    ) -> Session:
        """Create a session directly inside group_path ("" for ungrouped)."""
        self._require_group(group_path)
        clean_title = validate_name(title, kind="Session title")
        clean_tool = validate_tool(tool, self.custom_tools)

        session = Session(
            session_id=new_session_id(),
            title=clean_title,
            group_path=group_path,
            project_path=project_path,
            worktree_path=worktree_path,
            command=command,
            yolo_mode=yolo_mode,
        )
        session.tool.set(clean_tool)
        self.sessions[session.session_id] = session
        self.sessions_in(group_path).append(session.session_id)
        self._bump()
        logger.debug("Created session {} in {!r}", session.session_id, group_path)
        return session

    def fork_session(self, parent_id: str, new_title: str, *, tool: str | None = None) -> Session:
        """Create a sub-session of parent_id.

        Forks of forks attach to the top-level parent, so sub-sessions are
        always exactly one level deep. The fork joins its parent's group so
        group counts include it.
        """
        parent = self.get_session(parent_id)
        root_parent = self.owner_session(parent) or parent
        clean_title = validate_name(new_title, kind="Session title")
        clean_tool = validate_tool(tool, self.custom_tools) if tool is not None else root_parent.tool.get()

        fork = Session(
            session_id=new_session_id(),
            title=clean_title,
            group_path=root_parent.group_path,
            parent_session_id=root_parent.session_id,
            project_path=root_parent.project_path,
            worktree_path=root_parent.worktree_path,
            command=root_parent.command,
            yolo_mode=root_parent.yolo_mode,
        )
        fork.tool.set(clean_tool)
        self.sessions[fork.session_id] = fork
        self.sessions_in(fork.group_path).append(fork.session_id)
        self._bump()
        logger.debug("Forked session {} from {}", fork.session_id, root_parent.session_id)
        return fork

    def add_session(self, session: Session) -> Session:
        """Register a pre-built session (used when loading from storage).

        A parent id that is unknown at load time is kept; such a session is
        displayed directly in its group until the parent reappears.
        """
        if session.session_id in self.sessions:
            raise StoreError(f"Session already exists: {session.session_id}")
        self._require_group(session.group_path)
        validate_name(session.title, kind="Session title")
        self.sessions[session.session_id] = session
        self.sessions_in(session.group_path).append(session.session_id)
        self._bump()
        return session

    def rename_session(self, session_id: str, title: str) -> None:
        session = self.get_session(session_id)
        session.title = validate_name(title, kind="Session title")
        self._bump()

    def move_session(self, session_id: str, group_path: str) -> None:
        """Move a direct session and its forks to another group."""
        session = self.get_session(session_id)
        self._require_group(group_path)
        if self.owner_session(session) is not None:
            raise InvalidPathError(group_path, "sub-sessions move with their parent")
        if session.group_path == group_path:
            return

        source = self.sessions_in(session.group_path)
        moving = [session, *(self.sessions[sid] for sid in source if self.owner_session(self.sessions[sid]) is session)]
        target = self.sessions_in(group_path)
        for item in moving:
            source.remove(item.session_id)
            target.append(item.session_id)
            item.group_path = group_path
        self._bump()

    def delete_session(self, session_id: str) -> Session:
        """Remove a session; its forks are re-parented to the grandparent.

        For a top-level session the grandparent is the group itself, so the
        forks become direct sessions of that group.
        """
        session = self.get_session(session_id)
        grandparent = session.parent_session_id if session.parent_session_id in self.sessions else None
        for fork in self.forks_of(session_id):
            fork.parent_session_id = grandparent
        self.sessions_in(session.group_path).remove(session_id)
        del self.sessions[session_id]
        self._bump()
        logger.info("Deleted session {}", session_id)
        return session
