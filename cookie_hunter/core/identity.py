"""Cookie identity keys and URL reconstruction.

A cookie is identified by scheme, normalized domain, path and name. The key
must come out identical whether it is derived from a live cookie or from the
URL and name a cookie store reports after a deletion.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

if TYPE_CHECKING:
    from .models import Cookie, CookieEntry


def _assemble_key(secure: bool, domain: str, path: str, name: str) -> str:
    scheme = "https://" if secure else "http://"
    return f"{scheme}{domain}{path}{{cookie:{name}}}"


def normalize_cookie_domain(domain: str) -> str:
    """Strip the leading wildcard-subdomain marker from a cookie domain."""
    domain = domain.lower()
    return domain[1:] if domain.startswith(".") else domain


def identity_from_cookie(cookie: Cookie) -> str:
    """Derive the registry key for a live cookie."""
    return _assemble_key(
        cookie.secure,
        normalize_cookie_domain(cookie.domain),
        cookie.path,
        cookie.name,
    )


def identity_from_entry(entry: CookieEntry) -> str:
    """Derive the registry key for a stored entry."""
    return _assemble_key(entry.secure, entry.domain, entry.path, entry.name)


def split_cookie_url(url: str) -> tuple[bool, str, str] | None:
    """
    Split a cookie URL into (secure, host, path).

    Cookie paths may legally contain "?" and "#", so everything after the
    host is kept verbatim as the path. IPv6 hosts keep their brackets and a
    port, if any, is dropped.

    Returns:
        Tuple of (secure, host, path), or None when the URL has no host
    """
    scheme, sep, rest = url.partition("://")
    if not sep:
        return None
    authority, slash, tail = rest.partition("/")
    if authority.startswith("["):
        host = authority[: authority.find("]") + 1] if "]" in authority else ""
    else:
        host = authority.partition(":")[0]
    if not host:
        return None
    path = "/" + tail if slash else "/"
    return scheme.lower() == "https", host.lower(), path


def identity_from_url(url: str, name: str) -> str:
    """
    Derive the registry key from a cookie URL and name.

    Args:
        url: Cookie URL such as "https://example.com/"
        name: Cookie name

    Returns:
        Registry key, or an empty string when the URL has no host
    """
    parts = split_cookie_url(url)
    if parts is None:
        return ""
    secure, host, path = parts
    return _assemble_key(secure, host, path, name)
