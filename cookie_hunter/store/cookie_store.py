"""Base cookie store interface and in-memory implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from cookie_hunter.core.identity import identity_from_cookie, identity_from_url
from cookie_hunter.core.models import Cookie, CookieChange, RemovalDetails

logger = logging.getLogger(__name__)

ChangeListener = Callable[[CookieChange], None]
RemovalCallback = Callable[[Optional[RemovalDetails]], None]


class CookieStoreError(Exception):
    """Raised when a cookie store cannot be opened or read."""


class BaseCookieStore(ABC):
    """
    Abstract cookie store.

    Stores enumerate their cookies, notify subscribers of changes, and
    delete cookies on request. Deletion is acknowledged through a callback
    which receives None when nothing was deleted.
    """

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    @abstractmethod
    def enumerate_all(self) -> list[Cookie]:
        """Return every cookie currently in the store."""

    @abstractmethod
    def remove(self, url: str, name: str, callback: RemovalCallback | None = None) -> None:
        """
        Delete the cookie with this name set for this URL.

        Args:
            url: Cookie URL ("scheme://domain/path")
            name: Cookie name
            callback: Receives RemovalDetails, or None if nothing was deleted
        """

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a change listener."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        """Remove a change listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, change: CookieChange) -> None:
        for listener in list(self._listeners):
            listener(change)


class MemoryCookieStore(BaseCookieStore):
    """Cookie store held in process memory, keyed by cookie identity."""

    def __init__(self, cookies: list[Cookie] | None = None) -> None:
        super().__init__()
        self._cookies: dict[str, Cookie] = {}
        for cookie in cookies or []:
            self._cookies[identity_from_cookie(cookie)] = cookie

    def enumerate_all(self) -> list[Cookie]:
        return list(self._cookies.values())

    def set_cookie(self, cookie: Cookie, cause: str = "explicit") -> None:
        """Add or overwrite a cookie and notify subscribers."""
        self._cookies[identity_from_cookie(cookie)] = cookie
        self._notify(CookieChange(cookie=cookie, removed=False, cause=cause))

    def delete_cookie(self, cookie: Cookie, cause: str = "explicit") -> bool:
        """Delete a cookie without acknowledgement, notifying subscribers."""
        stored = self._cookies.pop(identity_from_cookie(cookie), None)
        if stored is None:
            return False
        self._notify(CookieChange(cookie=stored, removed=True, cause=cause))
        return True

    def remove(self, url: str, name: str, callback: RemovalCallback | None = None) -> None:
        key = identity_from_url(url, name)
        stored = self._cookies.pop(key, None)
        details = None
        if stored is not None:
            details = RemovalDetails(url=url, name=name)
            self._notify(CookieChange(cookie=stored, removed=True, cause="explicit"))
        else:
            logger.debug("No cookie %s for %s", name, url)
        if callback is not None:
            callback(details)

    def get(self, url: str, name: str) -> Cookie | None:
        """Return the cookie with this name for this URL, if any."""
        return self._cookies.get(identity_from_url(url, name))

    def __len__(self) -> int:
        return len(self._cookies)

