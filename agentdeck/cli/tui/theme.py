"""Color theme for the curses front-end.

A Theme is an explicit object handed to the app and renderer. Color pairs are
registered with curses once per theme via `init_colors`.
"""

from __future__ import annotations

import curses
from dataclasses import dataclass, field

from agentdeck.cli.tui.types import ThemeMode
from agentdeck.core.models import SessionStatus

# Pair ids registered by init_colors
_PAIR_IDS: dict[str, int] = {
    "running": 1,
    "waiting": 2,
    "idle": 3,
    "error": 4,
    "starting": 5,
    "group": 6,
    "muted": 7,
    "badge": 8,
    "status_bar": 9,
}

# (foreground, background) per role; -1 is the terminal default
_DARK: dict[str, tuple[int, int]] = {
    "running": (114, -1),  # Green
    "waiting": (221, -1),  # Amber
    "idle": (245, -1),  # Grey
    "error": (203, -1),  # Red
    "starting": (117, -1),  # Light blue
    "group": (153, -1),
    "muted": (240, -1),
    "badge": (141, -1),
    "status_bar": (252, 236),
}

_LIGHT: dict[str, tuple[int, int]] = {
    "running": (28, -1),
    "waiting": (130, -1),
    "idle": (242, -1),
    "error": (160, -1),
    "starting": (25, -1),
    "group": (24, -1),
    "muted": (248, -1),
    "badge": (91, -1),
    "status_bar": (235, 254),
}

STATUS_GLYPHS: dict[SessionStatus, str] = {
    SessionStatus.RUNNING: "●",
    SessionStatus.WAITING: "◐",
    SessionStatus.IDLE: "○",
    SessionStatus.ERROR: "✕",
    SessionStatus.STARTING: "◌",
}


@dataclass
class Theme:
    """Role -> color mapping for one appearance mode."""

    mode: ThemeMode = ThemeMode.DARK
    colors: dict[str, tuple[int, int]] = field(default_factory=lambda: dict(_DARK))
    _ready: bool = field(default=False, repr=False)

    @classmethod
    def for_mode(cls, mode: str | ThemeMode) -> Theme:
        resolved = ThemeMode(mode)
        palette = _DARK if resolved is ThemeMode.DARK else _LIGHT
        return cls(mode=resolved, colors=dict(palette))

    def attr(self, role: str) -> int:
        """curses attribute for role; plain text until colors are initialized."""
        if not self._ready or role not in _PAIR_IDS:
            return curses.A_NORMAL
        attr = curses.color_pair(_PAIR_IDS[role])
        if role == "group":
            attr |= curses.A_BOLD
        return attr


def init_colors(theme: Theme) -> None:
    """Register the theme's color pairs. Requires an initialized curses screen."""
    if not curses.has_colors():
        return
    curses.start_color()
    curses.use_default_colors()
    colors_available = curses.COLORS
    for role, pair_id in _PAIR_IDS.items():
        fg, bg = theme.colors[role]
        if colors_available < 256:
            # Fall back to the basic palette on 8/16 color terminals
            fg = fg % 8 if fg >= 0 else fg
            bg = bg % 8 if bg >= 0 else bg
        curses.init_pair(pair_id, fg, bg)
    theme._ready = True
