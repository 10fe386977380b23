"""Core data models for Cookie Hunter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .identity import normalize_cookie_domain


@dataclass(frozen=True)
class Cookie:
    """A live cookie as reported by a cookie store."""

    domain: str  # As stored: ".google.com" for any-subdomain cookies
    path: str
    name: str
    value: str = ""
    secure: bool = False
    session: bool = True  # No persistent expiry
    expires: Optional[datetime] = None


@dataclass(frozen=True)
class CookieChange:
    """Change notification delivered by a cookie store."""

    cookie: Cookie
    removed: bool = False
    cause: str = ""  # e.g. "explicit", "overwrite", "expired"


@dataclass(frozen=True)
class RemovalDetails:
    """Acknowledgement of a cookie deleted by the store."""

    url: str
    name: str


class CookieEntry:
    """
    Registry record for one cookie identity.

    Entries are mutated in place rather than replaced so that retired
    entries can be pooled and reused by the registry.
    """

    __slots__ = (
        "secure",
        "session",
        "any_subdomain",
        "domain",
        "path",
        "name",
        "value",
        "last_seen",
    )

    def __init__(self, cookie: Cookie | None = None, now: float = 0.0) -> None:
        self.secure = False
        self.session = False
        self.any_subdomain = False
        self.domain = ""
        self.path = ""
        self.name = ""
        self.value = ""
        self.last_seen = 0.0  # ms since epoch
        if cookie is not None:
            self.set(cookie, now)

    def set(self, cookie: Cookie, now: float) -> CookieEntry:
        """Populate every field from a live cookie."""
        self.secure = cookie.secure
        self.session = cookie.session
        self.any_subdomain = cookie.domain.startswith(".")
        self.domain = normalize_cookie_domain(cookie.domain)
        self.path = cookie.path
        self.name = cookie.name
        self.value = cookie.value
        self.last_seen = now
        return self

    def unset(self) -> CookieEntry:
        """Release string fields before the entry goes back to the pool."""
        self.domain = ""
        self.path = ""
        self.name = ""
        self.value = ""
        return self

    def __repr__(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"<CookieEntry {scheme}://{self.domain}{self.path} {self.name!r}>"
