"""Share-code group registry.

Maps a client-supplied share code to the instant its group stops accepting
new members. Entries are never removed: expiry is checked lazily when a code
is presented, and an expired entry is simply overwritten. Memory therefore
grows with the number of distinct codes ever seen by the process.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ShareCodeRegistry(Protocol):
    """Concurrency-safe code -> expiry mapping shared by all sessions."""

    def lookup(self, code: str) -> Optional[datetime]:
        """Return the stored expiry for *code*, expired or not."""
        ...

    def upsert(self, code: str, expires_at: datetime) -> None:
        """Store *expires_at* for *code*, overwriting any previous entry."""
        ...

    def join_or_create(
        self, code: str, now: datetime, ttl: timedelta
    ) -> tuple[datetime, bool]:
        """Join the live group for *code*, or start a new one.

        Returns the group's expiry and whether a new group was created.
        """
        ...


class InMemoryShareCodeRegistry:
    """Process-local registry guarded by a single lock."""

    def __init__(self) -> None:
        self._entries: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def lookup(self, code: str) -> Optional[datetime]:
        with self._lock:
            return self._entries.get(code)

    def upsert(self, code: str, expires_at: datetime) -> None:
        with self._lock:
            self._entries[code] = expires_at

    def join_or_create(
        self, code: str, now: datetime, ttl: timedelta
    ) -> tuple[datetime, bool]:
        with self._lock:
            current = self._entries.get(code)
            # An entry is still joinable at exactly its expiry instant.
            if current is not None and not now > current:
                return current, False
            expires_at = now + ttl
            self._entries[code] = expires_at
        logger.debug("Share code group created, expires at %s", expires_at.isoformat())
        return expires_at, True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return code in self._entries
