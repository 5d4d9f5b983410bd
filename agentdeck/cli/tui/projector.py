"""Flatten the group tree into the list the session view renders.

Structure: Group -> direct Session -> forks, then subgroups (depth-first).
Ungrouped sessions follow the root groups without a header row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from agentdeck.cli.tui.types import ItemType
from agentdeck.constants import MAX_ROOT_GROUP_HOTKEY
from agentdeck.core.group_tree import GroupTree
from agentdeck.core.models import Group, Session

ItemKey = tuple[str, str]


@dataclass(frozen=True)
class Item:
    """One row of the flattened list. Rebuilt on every projection."""

    type: ItemType
    index: int
    level: int
    path: str
    group: Group | None = None
    session: Session | None = None
    root_group_num: int | None = None
    is_last_in_group: bool = False
    is_sub_session: bool = False
    is_last_sub_session: bool = False
    parent_is_last_in_group: bool = False
    is_selected: bool = False

    @property
    def key(self) -> ItemKey:
        """Stable identity used to re-find the cursor after a rebuild."""
        if self.type is ItemType.GROUP:
            return ("group", self.path)
        assert self.session is not None
        return ("session", self.session.session_id)


def _forks_by_parent(tree: GroupTree) -> dict[str, list[Session]]:
    forks: dict[str, list[Session]] = {}
    for path in sorted(tree.groups):
        _collect_forks(tree, tree.groups[path].sessions, forks)
    _collect_forks(tree, tree.root_sessions, forks)
    return forks


def _collect_forks(tree: GroupTree, session_ids: list[str], forks: dict[str, list[Session]]) -> None:
    for sid in session_ids:
        session = tree.sessions[sid]
        owner = tree.owner_session(session)
        if owner is not None:
            forks.setdefault(owner.session_id, []).append(session)


def project_items(
    tree: GroupTree,
    *,
    bulk_select_mode: bool = False,
    selected_session_ids: Iterable[str] = (),
) -> list[Item]:
    """Project tree into display order.

    Pure: the same tree contents and selection always yield the same list.

    Args:
        tree: Store to project
        bulk_select_mode: Whether checkbox selection is active
        selected_session_ids: Sessions marked while bulk selecting

    Returns:
        Items with absolute indices, in display order
    """
    selected = frozenset(selected_session_ids) if bulk_select_mode else frozenset()
    forks_by_parent = _forks_by_parent(tree)
    items: list[Item] = []

    def emit_sessions(direct: list[Session], level: int, path: str, last_child_is_session: bool) -> None:
        for position, session in enumerate(direct):
            is_last = last_child_is_session and position == len(direct) - 1
            items.append(
                Item(
                    type=ItemType.SESSION,
                    index=len(items),
                    level=level,
                    path=path,
                    session=session,
                    is_last_in_group=is_last,
                    is_selected=session.session_id in selected,
                )
            )
            forks = forks_by_parent.get(session.session_id, [])
            for fork_position, fork in enumerate(forks):
                items.append(
                    Item(
                        type=ItemType.SESSION,
                        index=len(items),
                        level=level + 1,
                        path=fork.group_path,
                        session=fork,
                        is_sub_session=True,
                        is_last_sub_session=fork_position == len(forks) - 1,
                        parent_is_last_in_group=is_last,
                        is_selected=fork.session_id in selected,
                    )
                )

    def direct_sessions(path: str) -> list[Session]:
        return [tree.sessions[sid] for sid in tree.sessions_in(path) if tree.owner_session(tree.sessions[sid]) is None]

    def emit_group(group: Group, root_num: int | None, is_last: bool) -> None:
        items.append(
            Item(
                type=ItemType.GROUP,
                index=len(items),
                level=group.level,
                path=group.path,
                group=group,
                root_group_num=root_num,
                is_last_in_group=is_last,
            )
        )
        if not group.expanded:
            return
        subgroups = tree.children_of(group.path)
        emit_sessions(direct_sessions(group.path), group.level + 1, group.path, not subgroups)
        for position, child in enumerate(subgroups):
            emit_group(child, None, position == len(subgroups) - 1)

    ungrouped = direct_sessions("")
    roots = tree.root_groups()
    for position, group in enumerate(roots, start=1):
        root_num = position if position <= MAX_ROOT_GROUP_HOTKEY else None
        emit_group(group, root_num, position == len(roots) and not ungrouped)
    emit_sessions(ungrouped, 0, "", True)
    return items


class ListProjector:
    """Memoizes the last projection per (tree, version, selection)."""

    def __init__(self) -> None:
        self._tree: GroupTree | None = None
        self._key: tuple[int, bool, frozenset[str]] | None = None
        self._items: list[Item] = []

    def project(
        self,
        tree: GroupTree,
        *,
        bulk_select_mode: bool = False,
        selected_session_ids: Iterable[str] = (),
    ) -> list[Item]:
        selected = frozenset(selected_session_ids) if bulk_select_mode else frozenset()
        key = (tree.version, bulk_select_mode, selected)
        if self._tree is tree and self._key == key:
            return self._items
        self._items = project_items(tree, bulk_select_mode=bulk_select_mode, selected_session_ids=selected)
        self._tree = tree
        self._key = key
        return self._items
