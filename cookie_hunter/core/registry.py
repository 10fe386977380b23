"""Cookie registry: canonical mapping of cookie identity to entry.

Retired entries are kept in a small pool and reused when new identities are
inserted, which keeps allocation churn down when cookies turn over quickly.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Iterator

from .constants import ENTRY_POOL_CAPACITY
from .identity import identity_from_cookie
from .models import Cookie, CookieEntry

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


class CookieRegistry:
    """
    Holds at most one CookieEntry per cookie identity.

    Entries are owned by the registry: callers may update value and
    timestamps in place, but only the registry creates or retires them.
    """

    def __init__(
        self,
        pool_capacity: int = ENTRY_POOL_CAPACITY,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """
        Initialize an empty registry.

        Args:
            pool_capacity: Maximum number of retired entries kept for reuse
            clock: Returns the current time in milliseconds
        """
        self._entries: dict[str, CookieEntry] = {}
        self._pool: list[CookieEntry] = []
        self._pool_capacity = pool_capacity
        self._clock = clock

    def upsert(self, cookie: Cookie) -> tuple[CookieEntry, bool]:
        """
        Insert a cookie if its identity is not registered yet.

        An existing entry is returned unchanged; the caller decides whether
        its value or timestamp should be overwritten.

        Returns:
            Tuple of (entry, created)
        """
        key = identity_from_cookie(cookie)
        entry = self._entries.get(key)
        if entry is not None:
            return entry, False

        now = self._clock()
        if self._pool:
            entry = self._pool.pop().set(cookie, now)
        else:
            entry = CookieEntry(cookie, now)
        self._entries[key] = entry
        return entry, True

    def populate(self, cookies: Iterable[Cookie]) -> int:
        """
        Register every cookie from a full enumeration.

        Returns:
            Number of entries created
        """
        created = 0
        for cookie in cookies:
            _, is_new = self.upsert(cookie)
            if is_new:
                created += 1
        logger.debug("Registry populated: %d new entries, %d total", created, len(self._entries))
        return created

    def remove(self, key: str) -> bool:
        """
        Retire the entry for a key.

        Returns:
            True if an entry was registered under the key
        """
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        if len(self._pool) < self._pool_capacity:
            self._pool.append(entry.unset())
        return True

    def lookup(self, key: str) -> CookieEntry | None:
        """Return the entry for a key, if any."""
        return self._entries.get(key)

    def keys(self) -> list[str]:
        """Return a snapshot of the registered keys."""
        return list(self._entries)

    def items(self) -> Iterator[tuple[str, CookieEntry]]:
        """
        Iterate (key, entry) pairs over a snapshot of the keys.

        Entries removed while iterating are skipped, never raised on.
        """
        for key in list(self._entries):
            entry = self._entries.get(key)
            if entry is not None:
                yield key, entry

    @property
    def pool_size(self) -> int:
        """Number of retired entries available for reuse."""
        return len(self._pool)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
