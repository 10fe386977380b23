"""Domain matching between cookies and the pages that use them."""

from __future__ import annotations

from typing import Iterable

from .models import CookieEntry


class DomainSet:
    """
    Space-delimited view of the domains a page has contacted.

    Membership is tested on whole tokens, so "example.com" does not match
    "evil-example.com" or "notexample.com".
    """

    __slots__ = ("_haystack",)

    def __init__(self, domains: Iterable[str]) -> None:
        self._haystack = " " + " ".join(domains) + " "

    def contains(self, domain: str) -> bool:
        """Exact token membership."""
        return f" {domain} " in self._haystack

    def contains_subdomain_of(self, domain: str) -> bool:
        """True if some token ends with "." + domain."""
        return f".{domain} " in self._haystack

    def matches(self, entry: CookieEntry | None) -> bool:
        """
        Check whether a cookie is used by the page.

        A cookie matches on its exact domain or, for any-subdomain cookies,
        on any subdomain of its domain.
        """
        if entry is None or not entry.domain:
            return False
        if self.contains(entry.domain):
            return True
        return entry.any_subdomain and self.contains_subdomain_of(entry.domain)

    def __repr__(self) -> str:
        return f"<DomainSet{self._haystack.rstrip()}>"


def domain_matches_scope(cookie_domain: str, any_subdomain: bool, scope_domain: str) -> bool:
    """
    Check whether a scope domain concerns a cookie domain.

    Any-subdomain cookies match scopes whose domain ends with the cookie
    domain; other cookies require an exact match.
    """
    if any_subdomain:
        return scope_domain.endswith(cookie_domain)
    return scope_domain == cookie_domain
