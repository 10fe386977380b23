"""Removability decisions for queued cookies.

A cookie queued for removal is re-validated at drain time: policies and open
pages may have changed since it was queued, and a cookie must never be
deleted while any matching scope or any open page still allows it.
"""

from __future__ import annotations

import logging

from cookie_hunter.core.constants import COOKIE_REQUEST_KIND
from cookie_hunter.core.matching import domain_matches_scope
from cookie_hunter.core.registry import CookieRegistry
from cookie_hunter.pages.page_stats import PageRegistry
from cookie_hunter.policy.scopes import (
    ScopeRegistry,
    is_global_scope_key,
    is_grant,
    scope_domain_from_key,
)

logger = logging.getLogger(__name__)


class RemovabilityEvaluator:
    """Decides whether a registered cookie may be deleted now."""

    def __init__(
        self,
        registry: CookieRegistry,
        scopes: ScopeRegistry,
        pages: PageRegistry,
    ) -> None:
        self._registry = registry
        self._scopes = scopes
        self._pages = pages

    def can_remove(self, key: str) -> bool:
        """
        Check whether the cookie registered under key can be removed.

        Checks, in order:
        1. Unregistered cookies are not removable.
        2. Queued session cookies are removable unconditionally.
        3. Any scope concerning the cookie domain (the global scope always
           does) which grants cookies blocks removal.
        4. Any open page using the cookie blocks removal if the page is
           exempt from deletion or its policy grants the cookie.

        Args:
            key: Cookie identity key

        Returns:
            True if nothing currently wants the cookie kept
        """
        entry = self._registry.lookup(key)
        if entry is None:
            return False

        if entry.session:
            return True

        cookie_domain = entry.domain

        for scope_key, scope in self._scopes.items():
            if not is_global_scope_key(scope_key):
                scope_domain = scope_domain_from_key(scope_key)
                if scope_domain is None:
                    continue
                if not domain_matches_scope(cookie_domain, entry.any_subdomain, scope_domain):
                    continue
            if is_grant(scope.evaluate(COOKIE_REQUEST_KIND, cookie_domain)):
                logger.debug("Cannot remove %s: allowed by scope %s", key, scope_key)
                return False

        for page in self._pages:
            if not page.domain_set().matches(entry):
                continue
            if page.ignore:
                logger.debug("Cannot remove %s: in use by exempt page %s", key, page.page_url)
                return False
            if self._scopes.whitelisted(page.page_url, COOKIE_REQUEST_KIND, cookie_domain):
                logger.debug("Cannot remove %s: allowed on page %s", key, page.page_url)
                return False

        return True
