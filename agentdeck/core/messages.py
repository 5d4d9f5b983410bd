"""Messages posted from background threads to the UI loop."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class StatusChanged:
    """Hook statuses changed; re-read sessions and rebuild the list.

    Carries no payload. Receiving it twice is the same as receiving it once.
    """

    at: float = field(default_factory=time.monotonic)



@dataclass(frozen=True)
class StoreChanged:
    """The session store file was written by another process; reload it."""

    at: float = field(default_factory=time.monotonic)


UiMessage = StatusChanged | StoreChanged
