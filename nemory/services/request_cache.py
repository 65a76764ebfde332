"""Recently-seen request cache with max-age eviction.

Constructed explicitly (one per app) and passed by reference; used to reject
duplicate manual triggers fired in quick succession.
"""

import time
from collections.abc import Callable

from cachetools import TTLCache

from nemory.constants import RECENT_REQUESTS_MAX_SIZE


class RecentRequestCache:
    def __init__(
        self,
        max_age_seconds: float,
        maxsize: int = RECENT_REQUESTS_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_age = max_age_seconds
        # Bounded; the least recently used key is dropped once full
        self._seen: TTLCache[str, bool] = TTLCache(maxsize=maxsize, ttl=max_age_seconds, timer=clock)

    def check_and_mark(self, key: str) -> bool:
        """Return True if *key* is new (and remember it), False if seen within max age."""
        if key in self._seen:
            return False
        self._seen[key] = True
        return True

    def forget(self, key: str) -> None:
        self._seen.pop(key, None)

    def __len__(self) -> int:
        self._seen.expire()
        return len(self._seen)
