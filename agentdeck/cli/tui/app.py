"""Curses front-end for the session list."""

from __future__ import annotations

import curses
import queue
import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from agentdeck.cli.tui.controller import DeckController
from agentdeck.cli.tui.theme import Theme, init_colors
from agentdeck.cli.tui.types import CursesWindow, ItemType, NotificationLevel
from agentdeck.cli.tui.widgets.session_list import SessionListView
from agentdeck.constants import MAX_ROOT_GROUP_HOTKEY, UI_POLL_INTERVAL_MS
from agentdeck.core.errors import StoreError
from agentdeck.core.messages import UiMessage

# Key name mapping for debug logging
KEY_NAMES = {
    curses.KEY_UP: "KEY_UP",
    curses.KEY_DOWN: "KEY_DOWN",
    curses.KEY_LEFT: "KEY_LEFT",
    curses.KEY_RIGHT: "KEY_RIGHT",
    curses.KEY_ENTER: "KEY_ENTER",
    curses.KEY_PPAGE: "KEY_PPAGE",
    curses.KEY_NPAGE: "KEY_NPAGE",
    curses.KEY_HOME: "KEY_HOME",
    curses.KEY_END: "KEY_END",
    10: "ENTER(10)",
    13: "ENTER(13)",
    27: "ESCAPE",
}

# Notification durations in seconds
NOTIFICATION_DURATION_INFO = 3.0
NOTIFICATION_DURATION_ERROR = 5.0

# Rows outside the list: title, status line, hint line
_CHROME_ROWS = 3
# The list reserves one row above and one below for scroll indicators
_INDICATOR_ROWS = 2

_HINTS = "j/k move  ⏎ toggle  g group  n new  f fork  d delete  v bulk  q quit"
_BULK_HINTS = "space select  D delete selected  v leave bulk  q quit"


def _key_name(key: int) -> str:
    """Get human-readable key name for logging."""
    if key in KEY_NAMES:
        return KEY_NAMES[key]
    if 32 <= key < 127:
        return f"'{chr(key)}'({key})"
    return f"KEY({key})"


@dataclass
class Notification:
    """Temporary message shown in the status line."""

    text: str
    level: NotificationLevel
    expires_at: float


class DeckApp:
    """Main curses loop.

    Drains the status inbox every tick, then handles at most one key.
    """

    def __init__(
        self,
        controller: DeckController,
        inbox: queue.Queue[UiMessage],
        theme: Theme,
        *,
        confirm_delete: bool = True,
        show_hotkeys: bool = True,
    ) -> None:
        self.controller = controller
        self.inbox = inbox
        self.theme = theme
        self.confirm_delete = confirm_delete
        self.show_hotkeys = show_hotkeys
        self.list_view = SessionListView(controller.tree, theme, controller.pr_cache)
        self.notification: Notification | None = None
        self.running = True

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        duration = NOTIFICATION_DURATION_ERROR if level is NotificationLevel.ERROR else NOTIFICATION_DURATION_INFO
        self.notification = Notification(text=message, level=level, expires_at=time.time() + duration)

    def run(self, stdscr: CursesWindow) -> None:
        """Main event loop.

        Uses a short input timeout so status updates are picked up while idle.
        """
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        init_colors(self.theme)
        stdscr.timeout(UI_POLL_INTERVAL_MS)
        self._resize(stdscr)
        self._render(stdscr)

        try:
            while self.running:
                self.controller.drain(self.inbox)
                key = stdscr.getch()
                if key == curses.KEY_RESIZE:
                    self._resize(stdscr)
                elif key != -1:
                    self._handle_key(key, stdscr)
                self._render(stdscr)
        finally:
            self.controller.close()

    def _resize(self, stdscr: CursesWindow) -> None:
        height, _ = stdscr.getmaxyx()
        self.controller.viewport.set_visible_count(height - _CHROME_ROWS - _INDICATOR_ROWS)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _handle_key(self, key: int, stdscr: CursesWindow) -> None:
        logger.trace("Key pressed: {}", _key_name(key))
        controller = self.controller
        viewport = controller.viewport

        if key == ord("q"):
            logger.debug("Quit requested")
            self.running = False
        elif key in (curses.KEY_UP, ord("k")):
            viewport.move_up()
        elif key in (curses.KEY_DOWN, ord("j")):
            viewport.move_down()
        elif key == curses.KEY_PPAGE:
            viewport.page_up()
        elif key == curses.KEY_NPAGE:
            viewport.page_down()
        elif key == curses.KEY_HOME:
            viewport.home()
        elif key == curses.KEY_END:
            viewport.end()
        elif ord("1") <= key <= ord(str(MAX_ROOT_GROUP_HOTKEY)):
            viewport.jump_to_root_group(key - ord("0"))
        elif key in (curses.KEY_ENTER, 10, 13):
            controller.toggle_group()
        elif key == curses.KEY_RIGHT:
            controller.set_group_expanded(True)
        elif key == curses.KEY_LEFT:
            controller.set_group_expanded(False)
        elif key == ord("v"):
            enabled = controller.toggle_bulk_select()
            self.notify("Bulk select on" if enabled else "Bulk select off")
        elif key == ord(" "):
            controller.toggle_selected()
        elif key == ord("D"):
            self._delete_bulk(stdscr)
        elif key == ord("g"):
            self._run_action(stdscr, "Group name: ", lambda name: controller.create_group(name), "Created group")
        elif key == ord("n"):
            self._run_action(stdscr, "Session title: ", lambda title: controller.create_session(title), "Created session")
        elif key == ord("f"):
            item = controller.selected_item
            if item is None or item.session is None:
                self.notify("Select a session to fork", NotificationLevel.WARNING)
                return
            self._run_action(stdscr, "Fork title: ", lambda title: controller.fork_selected(title), "Forked session")
        elif key == ord("d"):
            self._delete_selected(stdscr)

    def _run_action(self, stdscr: CursesWindow, label: str, action: Callable[[str], object], success: str) -> None:
        text = self._prompt(stdscr, label)
        if text is None:
            return
        try:
            action(text)
        except StoreError as e:
            self.notify(str(e), NotificationLevel.ERROR)
            return
        self.notify(success, NotificationLevel.SUCCESS)

    def _delete_selected(self, stdscr: CursesWindow) -> None:
        item = self.controller.selected_item
        if item is None:
            return
        if item.type is ItemType.GROUP:
            assert item.group is not None
            count = self.controller.tree.recursive_session_count(item.path)
            label = f"Delete group '{item.group.name}' and {count} session(s)?"
            cascade = True
        else:
            assert item.session is not None
            label = f"Delete session '{item.session.title}'?"
            cascade = False
        if self.confirm_delete and not self._confirm(stdscr, label):
            return
        try:
            self.controller.delete_selected(cascade=cascade)
        except StoreError as e:
            self.notify(str(e), NotificationLevel.ERROR)
            return
        self.notify("Deleted", NotificationLevel.SUCCESS)

    def _delete_bulk(self, stdscr: CursesWindow) -> None:
        view = self.controller.state.sessions
        if not view.bulk_select_mode or not view.selected_session_ids:
            self.notify("Nothing selected", NotificationLevel.WARNING)
            return
        if self.confirm_delete and not self._confirm(stdscr, f"Delete {len(view.selected_session_ids)} session(s)?"):
            return
        removed = self.controller.delete_bulk_selection()
        self.notify(f"Deleted {removed} session(s)", NotificationLevel.SUCCESS)

    def _prompt(self, stdscr: CursesWindow, label: str) -> str | None:
        """Read a line in the status row. Escape cancels."""
        height, width = stdscr.getmaxyx()
        buffer = ""
        stdscr.timeout(-1)
        try:
            while True:
                stdscr.move(height - 2, 0)
                stdscr.clrtoeol()
                stdscr.addstr(height - 2, 0, (label + buffer)[: width - 1])
                stdscr.refresh()
                ch = stdscr.get_wch()
                if ch in ("\n", "\r", curses.KEY_ENTER):
                    return buffer.strip() or None
                if ch == "\x1b":
                    return None
                if ch in (curses.KEY_BACKSPACE, "\x7f", "\b"):
                    buffer = buffer[:-1]
                elif isinstance(ch, str) and ch.isprintable():
                    buffer += ch
        finally:
            stdscr.timeout(UI_POLL_INTERVAL_MS)

    def _confirm(self, stdscr: CursesWindow, label: str) -> bool:
        height, width = stdscr.getmaxyx()
        stdscr.move(height - 2, 0)
        stdscr.clrtoeol()
        stdscr.addstr(height - 2, 0, f"{label} [y/N]"[: width - 1], self.theme.attr("waiting"))
        stdscr.refresh()
        stdscr.timeout(-1)
        try:
            return stdscr.getch() in (ord("y"), ord("Y"))
        finally:
            stdscr.timeout(UI_POLL_INTERVAL_MS)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _render(self, stdscr: CursesWindow) -> None:
        height, width = stdscr.getmaxyx()
        stdscr.erase()
        tree = self.controller.tree
        title = f" agentdeck  {len(tree.groups)} groups  {tree.recursive_session_count('')} sessions"
        if not self.controller.synchronizer.enabled:
            title += "  (status updates off)"
        self._addstr(stdscr, 0, title, width, self.theme.attr("status_bar") | curses.A_BOLD)

        view = self.controller.state.sessions
        viewport = self.controller.viewport
        self.list_view.render(
            stdscr,
            1,
            width,
            viewport.items,
            view.cursor,
            view.view_offset,
            viewport.visible_count,
            bulk_select_mode=view.bulk_select_mode,
        )

        notification = self.notification
        if notification is not None and notification.expires_at < time.time():
            self.notification = notification = None
        if notification is not None:
            role = {
                NotificationLevel.ERROR: "error",
                NotificationLevel.WARNING: "waiting",
                NotificationLevel.SUCCESS: "running",
            }.get(notification.level, "")
            self._addstr(stdscr, height - 2, notification.text, width, self.theme.attr(role) if role else 0)
        if self.show_hotkeys:
            hints = _BULK_HINTS if view.bulk_select_mode else _HINTS
            self._addstr(stdscr, height - 1, hints, width, self.theme.attr("muted"))
        stdscr.refresh()

    @staticmethod
    def _addstr(stdscr: CursesWindow, row: int, text: str, width: int, attr: int) -> None:
        if row < 0 or width <= 1:
            return
        try:
            stdscr.addstr(row, 0, text[: width - 1], attr)
        except curses.error:
            pass
