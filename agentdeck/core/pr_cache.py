"""Pull-request status cache read by the renderer.

An external fetcher fills the cache; the UI only ever performs non-blocking
lookups. Entries expire after a TTL.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from agentdeck.constants import PR_BADGE_STATES, PR_CACHE_TTL_S


@dataclass(frozen=True)
class PRInfo:
    number: int
    state: str
    title: str = ""
    url: str = ""

    @property
    def has_badge(self) -> bool:
        """Drafts and unknown states are not badged."""
        return self.state.upper() in PR_BADGE_STATES


class PRCache:
    """Thread-safe TTL cache of session_id -> PRInfo | None."""

    def __init__(self, ttl_s: float = PR_CACHE_TTL_S, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_s = ttl_s
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[PRInfo | None, float]] = {}

    def get_pr(self, session_id: str) -> tuple[PRInfo | None, bool]:
        """Return (info, found).

        found is False for missing or expired entries. (None, True) means the
        fetcher looked and the session has no PR.
        """
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None, False
            info, stored_at = entry
            if self._clock() - stored_at >= self._ttl_s:
                del self._entries[session_id]
                return None, False
            return info, True

    def set_pr(self, session_id: str, info: PRInfo | None) -> None:
        with self._lock:
            self._entries[session_id] = (info, self._clock())

    def invalidate(self, session_id: str) -> None:
        with self._lock:
            self._entries.pop(session_id, None)

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()
