"""Shared TUI types."""

from __future__ import annotations

import curses
from enum import Enum
from typing import TypeAlias


class ItemType(str, Enum):
    """Row kinds in the flattened session list."""

    GROUP = "group"
    SESSION = "session"


class NotificationLevel(str, Enum):
    """Notification severity levels."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class ThemeMode(str, Enum):
    """Theme mode identifiers."""

    DARK = "dark"
    LIGHT = "light"


CursesWindow: TypeAlias = curses.window
