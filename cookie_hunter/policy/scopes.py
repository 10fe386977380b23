"""Scope policy for Cookie Hunter.

A scope is a policy boundary: the global scope applies everywhere, while a
domain scope (e.g. "https://*.example.com") applies to pages on that domain.
Each scope holds allow (whitelist) and deny (blacklist) rules per request
kind and domain.

Decisions are short strings whose first character tells grant ("g") from
deny ("r"); the rest tells where the verdict came from:
    "d"   - rule on the exact domain
    "p"   - rule on a parent domain or a wildcard rule
    "def" - the scope default
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

GLOBAL_SCOPE_KEY = "*"
ANY = "*"
RULE_SEPARATOR = "|"

_SCOPE_KEY_PATTERN = re.compile(
    r"^(?P<scheme>https?)://(?P<wildcard>\*\.)?(?P<domain>[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)*)$"
)


class ScopeError(Exception):
    """Raised when a scope key or rule is invalid."""


def is_global_scope_key(key: str) -> bool:
    """Return True for the global scope key."""
    return key == GLOBAL_SCOPE_KEY


def scope_domain_from_key(key: str) -> str | None:
    """
    Extract the domain of a domain scope key.

    Args:
        key: Scope key such as "https://*.example.com"

    Returns:
        The domain ("example.com"), or None for global or malformed keys
    """
    match = _SCOPE_KEY_PATTERN.match(key.strip().lower())
    if match is None:
        return None
    return match.group("domain")


def is_grant(decision: str) -> bool:
    """Return True if a decision string denotes an explicit allow."""
    return decision[:1] == "g"


def _hierarchy(domain: str) -> Iterator[str]:
    """Yield a domain and its parents: a.b.com, b.com, com."""
    parts = domain.split(".")
    for i in range(len(parts)):
        yield ".".join(parts[i:])


def _parse_rule(rule: str) -> tuple[str, str]:
    kind, sep, domain = rule.partition(RULE_SEPARATOR)
    kind = kind.strip().lower()
    domain = domain.strip().lower().lstrip(".")
    if not sep or not kind or not domain:
        raise ScopeError(f"Invalid rule '{rule}': expected 'kind|domain'")
    return kind, domain


@dataclass
class Scope:
    """Allow and deny rules for one scope."""

    whitelist: set[tuple[str, str]] = field(default_factory=set)
    blacklist: set[tuple[str, str]] = field(default_factory=set)
    default_allow: bool = True

    def allow(self, kind: str, domain: str) -> None:
        """Add an allow rule, replacing a deny rule for the same target."""
        target = (kind.lower(), domain.lower().lstrip("."))
        self.blacklist.discard(target)
        self.whitelist.add(target)

    def deny(self, kind: str, domain: str) -> None:
        """Add a deny rule, replacing an allow rule for the same target."""
        target = (kind.lower(), domain.lower().lstrip("."))
        self.whitelist.discard(target)
        self.blacklist.add(target)

    def _lookup(self, kind: str, domain: str) -> str | None:
        """Return "g", "r" or None for rules on this exact target."""
        for target in ((kind, domain), (ANY, domain)):
            if target in self.whitelist:
                return "g"
            if target in self.blacklist:
                return "r"
        return None

    def evaluate(self, kind: str, domain: str) -> str:
        """
        Evaluate a request kind against a domain.

        The most specific rule wins: the exact domain first, then each parent
        domain, then wildcard-domain rules, then the scope default. At equal
        specificity an allow rule beats a deny rule.

        Args:
            kind: Request kind, e.g. "cookie"
            domain: Domain the request targets

        Returns:
            Decision string, see module docstring
        """
        kind = kind.lower()
        domain = domain.lower().lstrip(".")

        for depth, candidate in enumerate(_hierarchy(domain)):
            verdict = self._lookup(kind, candidate)
            if verdict is not None:
                return verdict + ("d" if depth == 0 else "p")

        verdict = self._lookup(kind, ANY)
        if verdict is not None:
            return verdict + "p"

        return "gdef" if self.default_allow else "rdef"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scope:
        """Create a scope from its config representation."""
        scope = cls(default_allow=data.get("default", "allow") == "allow")
        for rule in data.get("whitelist", []):
            scope.whitelist.add(_parse_rule(rule))
        for rule in data.get("blacklist", []):
            scope.blacklist.add(_parse_rule(rule))
        return scope

    def to_dict(self) -> dict[str, Any]:
        """Convert to the config representation."""
        return {
            "whitelist": sorted(f"{k}{RULE_SEPARATOR}{d}" for k, d in self.whitelist),
            "blacklist": sorted(f"{k}{RULE_SEPARATOR}{d}" for k, d in self.blacklist),
            "default": "allow" if self.default_allow else "deny",
        }


class ScopeRegistry:
    """
    Collection of scopes keyed by scope key.

    The global scope always exists. Page-level policy questions are answered
    by the most specific scope covering the page.
    """

    def __init__(self, global_scope: Scope | None = None) -> None:
        self._scopes: dict[str, Scope] = {GLOBAL_SCOPE_KEY: global_scope or Scope()}

    @staticmethod
    def normalize_key(key: str) -> str:
        """Validate and normalize a scope key."""
        key = key.strip().lower()
        if is_global_scope_key(key):
            return key
        if scope_domain_from_key(key) is None:
            raise ScopeError(f"Invalid scope key '{key}': expected 'scheme://[*.]domain' or '*'")
        return key

    def add_scope(self, key: str, scope: Scope | None = None) -> Scope:
        """Add or replace a scope and return it."""
        key = self.normalize_key(key)
        scope = scope or Scope()
        self._scopes[key] = scope
        return scope

    def remove_scope(self, key: str) -> bool:
        """Remove a domain scope. The global scope cannot be removed."""
        key = key.strip().lower()
        if is_global_scope_key(key):
            return False
        return self._scopes.pop(key, None) is not None

    def get(self, key: str) -> Scope | None:
        """Return the scope for a key, if any."""
        return self._scopes.get(key.strip().lower())

    @property
    def global_scope(self) -> Scope:
        """The global scope."""
        return self._scopes[GLOBAL_SCOPE_KEY]

    def items(self) -> list[tuple[str, Scope]]:
        """Return a snapshot of (scope key, scope) pairs."""
        return list(self._scopes.items())

    def scope_key_from_page_url(self, page_url: str) -> str:
        """
        Find the most specific existing scope covering a page.

        Tries the exact host scope, then wildcard scopes from the host up
        through its parents, then falls back to the global scope.
        """
        if is_global_scope_key(page_url):
            return GLOBAL_SCOPE_KEY
        parts = urlsplit(page_url)
        host = parts.hostname
        if not host or parts.scheme not in ("http", "https"):
            return GLOBAL_SCOPE_KEY

        exact = f"{parts.scheme}://{host}"
        if exact in self._scopes:
            return exact
        for candidate in _hierarchy(host):
            wildcard = f"{parts.scheme}://*.{candidate}"
            if wildcard in self._scopes:
                return wildcard
        return GLOBAL_SCOPE_KEY

    def evaluate(self, page_url: str, kind: str, domain: str) -> str:
        """Evaluate a request from a page (or the global marker)."""
        return self._scopes[self.scope_key_from_page_url(page_url)].evaluate(kind, domain)

    def whitelisted(self, page_url: str, kind: str, domain: str) -> bool:
        """True if the page's scope grants the request."""
        return is_grant(self.evaluate(page_url, kind, domain))

    def blacklisted(self, page_url: str, kind: str, domain: str) -> bool:
        """True if the page's scope does not grant the request."""
        return not self.whitelisted(page_url, kind, domain)

    @classmethod
    def from_config(cls, scopes: dict[str, Any]) -> ScopeRegistry:
        """
        Build a registry from the "scopes" config section.

        Malformed scope keys or rules are skipped with a warning.
        """
        registry = cls()
        for key, data in scopes.items():
            try:
                registry.add_scope(key, Scope.from_dict(data))
            except ScopeError as e:
                logger.warning("Skipping scope '%s': %s", key, e)
        return registry

    def __len__(self) -> int:
        return len(self._scopes)

    def __contains__(self, key: str) -> bool:
        return key.strip().lower() in self._scopes
