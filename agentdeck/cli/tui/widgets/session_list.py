"""Session list rendering: tree guides, status glyphs, badges and checkboxes."""

from __future__ import annotations

import curses
from dataclasses import dataclass

from loguru import logger

from agentdeck.cli.tui.projector import Item
from agentdeck.cli.tui.theme import STATUS_GLYPHS, Theme
from agentdeck.cli.tui.types import CursesWindow, ItemType
from agentdeck.core.group_tree import GroupTree
from agentdeck.core.models import Session, SessionStatus
from agentdeck.core.pr_cache import PRCache

_BRANCH = "├─ "
_CORNER = "└─ "
_VERTICAL = "│  "
_BLANK = "   "
_INDENT = "  "


@dataclass(frozen=True)
class Segment:
    """Single immutable segment in a rendered line."""

    text: str
    role: str = ""


def truncate_text(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if too long."""
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + "…"


def _tree_prefix(item: Item) -> str:
    if item.type is ItemType.GROUP:
        return _INDENT * item.level
    if item.is_sub_session:
        # Parent column guide only exists when the parent itself hangs off a group
        guide = ""
        if item.level >= 2:
            guide = _INDENT * (item.level - 2) + (_BLANK if item.parent_is_last_in_group else _VERTICAL)
        return guide + (_CORNER if item.is_last_sub_session else _BRANCH)
    if item.level == 0:
        return ""
    return _INDENT * (item.level - 1) + (_CORNER if item.is_last_in_group else _BRANCH)


def _pr_badge(session: Session, pr_cache: PRCache | None) -> str:
    if pr_cache is None or not session.is_worktree():
        return ""
    info, found = pr_cache.get_pr(session.session_id)
    if not found or info is None or not info.has_badge:
        return ""
    return f"[#{info.number}]"


def format_group(item: Item, tree: GroupTree) -> list[Segment]:
    group = item.group
    assert group is not None
    arrow = "▾" if group.expanded else "▸"
    hotkey = f"[{item.root_group_num}] " if item.root_group_num is not None else ""
    segments = [
        Segment(_tree_prefix(item)),
        Segment(f"{arrow} {hotkey}{group.name}", "group"),
        Segment(f" ({tree.recursive_session_count(group.path)})", "muted"),
    ]
    counts = tree.recursive_status_counts(group.path)
    if counts[SessionStatus.RUNNING]:
        segments.append(Segment(f" {STATUS_GLYPHS[SessionStatus.RUNNING]}{counts[SessionStatus.RUNNING]}", "running"))
    if counts[SessionStatus.WAITING]:
        segments.append(Segment(f" {STATUS_GLYPHS[SessionStatus.WAITING]}{counts[SessionStatus.WAITING]}", "waiting"))
    return segments


def format_session(item: Item, pr_cache: PRCache | None, *, bulk_select_mode: bool) -> list[Segment]:
    session = item.session
    assert session is not None
    status = session.status.get()
    segments = [Segment(_tree_prefix(item))]
    if bulk_select_mode:
        segments.append(Segment("[x] " if item.is_selected else "[ ] "))
    segments.append(Segment(f"{STATUS_GLYPHS[status]} ", status.value))
    segments.append(Segment(session.title))
    segments.append(Segment(f" {session.tool.get()}", "muted"))
    if session.yolo_mode:
        segments.append(Segment(" [YOLO]", "error"))
    badge = _pr_badge(session, pr_cache)
    if badge:
        segments.append(Segment(f" {badge}", "badge"))
    return segments


def format_item(item: Item, tree: GroupTree, pr_cache: PRCache | None, *, bulk_select_mode: bool) -> list[Segment]:
    if item.type is ItemType.GROUP:
        return format_group(item, tree)
    return format_session(item, pr_cache, bulk_select_mode=bulk_select_mode)


class SessionListView:
    """Draws the visible slice of the projected items.

    One row above and one below the items are reserved for "more" indicators.
    """

    def __init__(self, tree: GroupTree, theme: Theme, pr_cache: PRCache | None = None) -> None:
        self.tree = tree
        self.theme = theme
        self.pr_cache = pr_cache

    def get_render_lines(
        self,
        items: list[Item],
        cursor: int,
        view_offset: int,
        visible_count: int,
        width: int,
        *,
        bulk_select_mode: bool = False,
    ) -> list[str]:
        """Return lines this view would render (testable without curses)."""
        return [
            "".join(segment.text for segment in row)
            for row in self._rows(items, cursor, view_offset, visible_count, width, bulk_select_mode)
        ]

    def _rows(
        self,
        items: list[Item],
        cursor: int,
        view_offset: int,
        visible_count: int,
        width: int,
        bulk_select_mode: bool,
    ) -> list[list[Segment]]:
        if not items:
            return [[Segment("(no sessions)", "muted")]]

        rows: list[list[Segment]] = []
        end = min(len(items), view_offset + visible_count)
        rows.append([Segment(f"  ↑ {view_offset} more", "muted")] if view_offset > 0 else [])
        for item in items[view_offset:end]:
            marker = Segment("> " if item.index == cursor else "  ")
            row = [marker, *format_item(item, self.tree, self.pr_cache, bulk_select_mode=bulk_select_mode)]
            rows.append(_clip(row, width))
        below = len(items) - end
        rows.append([Segment(f"  ↓ {below} more", "muted")] if below > 0 else [])
        return rows

    def render(
        self,
        stdscr: CursesWindow,
        start_row: int,
        width: int,
        items: list[Item],
        cursor: int,
        view_offset: int,
        visible_count: int,
        *,
        bulk_select_mode: bool = False,
    ) -> None:
        """Render rows starting at start_row; uses visible_count + 2 screen lines."""
        rows = self._rows(items, cursor, view_offset, visible_count, width, bulk_select_mode)
        for offset, row in enumerate(rows):
            is_cursor_row = bool(row) and row[0].text == "> "
            col = 0
            for segment in row:
                attr = self.theme.attr(segment.role) if segment.role else curses.A_NORMAL
                if is_cursor_row:
                    attr |= curses.A_REVERSE
                try:
                    stdscr.addstr(start_row + offset, col, segment.text, attr)
                except curses.error:
                    # Writing the bottom-right cell raises; the text is still drawn
                    pass
                col += len(segment.text)
        logger.trace("SessionListView.render: {} rows from offset {}", len(rows), view_offset)


def _clip(row: list[Segment], width: int) -> list[Segment]:
    clipped: list[Segment] = []
    remaining = max(0, width - 1)
    for segment in row:
        if remaining <= 0:
            break
        text = truncate_text(segment.text, remaining)
        clipped.append(Segment(text, segment.role))
        remaining -= len(text)
    return clipped
