"""Constants used across agentdeck.

This module defines shared constants to ensure consistency.
"""

# Names shown in the session list (groups and session titles)
MAX_NAME_LENGTH = 50

# Group paths are built from slugified names joined by this separator
GROUP_PATH_SEPARATOR = "/"

# Root groups beyond this index get no numeric hotkey
MAX_ROOT_GROUP_HOTKEY = 9

# Hook status files
HOOK_FILE_SUFFIX = ".json"
HOOK_DEBOUNCE_S = 0.1  # Coalesce bursts of hook writes into one pass
WATCHER_JOIN_TIMEOUT_S = 2.0

# Session store
STORE_DEBOUNCE_S = 0.1  # Atomic renames fire several events per save

# PR badge cache
PR_CACHE_TTL_S = 60.0
PR_BADGE_STATES = frozenset({"OPEN", "MERGED", "CLOSED"})

# Curses loop polling interval in milliseconds
UI_POLL_INTERVAL_MS = 100
