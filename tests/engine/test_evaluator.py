"""Tests for removability decisions."""

import pytest

from cookie_hunter.core.identity import identity_from_cookie
from cookie_hunter.core.registry import CookieRegistry
from cookie_hunter.engine.evaluator import RemovabilityEvaluator
from cookie_hunter.policy.scopes import Scope


@pytest.fixture
def registry():
    return CookieRegistry()


@pytest.fixture
def evaluator(registry, scopes, pages):
    """Evaluator over a global scope that denies cookies."""
    return RemovabilityEvaluator(registry, scopes, pages)


@pytest.fixture
def register(registry):
    """Register a cookie and return its key."""

    def _register(cookie):
        registry.upsert(cookie)
        return identity_from_cookie(cookie)

    return _register


class TestRegistryAndSession:
    """Steps 1 and 2: unknown and session cookies."""

    def test_unknown_key(self, evaluator):
        """Unregistered cookies are never removable."""
        assert evaluator.can_remove("http://example.com/{cookie:id}") is False

    def test_session_cookie_bypasses_policy(self, evaluator, register, scopes, pages, make_cookie):
        """Session cookies are removable whatever scopes and pages say."""
        key = register(make_cookie(session=True))
        scopes.global_scope.allow("cookie", "example.com")
        pages.open_page("https://example.com/", domains=["example.com"], ignore=True)

        assert evaluator.can_remove(key) is True


class TestScopeVeto:
    """Step 3: scopes granting the cookie block removal."""

    def test_denied_everywhere(self, evaluator, register, make_cookie):
        """A cookie no scope allows is removable."""
        key = register(make_cookie())
        assert evaluator.can_remove(key) is True

    def test_global_grant_blocks(self, evaluator, register, scopes, make_cookie):
        """The global scope is always consulted."""
        key = register(make_cookie())
        scopes.global_scope.allow("cookie", "example.com")
        assert evaluator.can_remove(key) is False

    def test_matching_site_scope_grant_blocks(self, evaluator, register, scopes, make_cookie):
        """A grant in a scope for the cookie's domain blocks removal."""
        key = register(make_cookie(domain="example.com"))
        scopes.add_scope("https://example.com", Scope(default_allow=False)).allow("cookie", "example.com")
        assert evaluator.can_remove(key) is False

    def test_unrelated_site_scope_ignored(self, evaluator, register, scopes, make_cookie):
        """Scopes for other domains do not protect the cookie."""
        key = register(make_cookie(domain="example.com"))
        scopes.add_scope("https://other.com", Scope(default_allow=True))
        assert evaluator.can_remove(key) is True

    def test_host_only_cookie_needs_exact_scope(self, evaluator, register, scopes, make_cookie):
        """Host-only cookies ignore scopes of subdomains."""
        key = register(make_cookie(domain="example.com"))
        scopes.add_scope("https://*.www.example.com", Scope(default_allow=True))
        assert evaluator.can_remove(key) is True

    def test_wildcard_cookie_matches_subdomain_scope(self, evaluator, register, scopes, make_cookie):
        """Any-subdomain cookies are protected by scopes of their subdomains."""
        key = register(make_cookie(domain=".example.com"))
        scopes.add_scope("https://*.www.example.com", Scope(default_allow=True))
        assert evaluator.can_remove(key) is False


class TestPageVeto:
    """Step 4: open pages using the cookie."""

    def test_exempt_page_blocks(self, evaluator, register, pages, make_cookie):
        """An ignore-flagged page using the cookie blocks removal."""
        key = register(make_cookie(domain="example.com"))
        pages.open_page("https://app.example.net/", domains=["example.com"], ignore=True)
        assert evaluator.can_remove(key) is False

    def test_exempt_page_blocks_wildcard_cookie(self, evaluator, register, pages, make_cookie):
        """Subdomain matches count for any-subdomain cookies."""
        key = register(make_cookie(domain=".example.com"))
        pages.open_page("https://app.example.net/", domains=["cdn.example.com"], ignore=True)
        assert evaluator.can_remove(key) is False

    def test_exempt_page_not_using_cookie(self, evaluator, register, pages, make_cookie):
        """Pages that do not use the cookie have no say."""
        key = register(make_cookie(domain="example.com"))
        pages.open_page("https://app.example.net/", domains=["notexample.com"], ignore=True)
        assert evaluator.can_remove(key) is True

    def test_page_policy_grant_blocks(self, evaluator, register, scopes, pages, make_cookie):
        """A page whose scope allows the cookie blocks removal."""
        key = register(make_cookie(domain="cdn.net"))
        scopes.add_scope("https://*.news.com", Scope(default_allow=False)).allow("cookie", "cdn.net")
        pages.open_page("https://www.news.com/story", domains=["www.news.com", "cdn.net"])
        assert evaluator.can_remove(key) is False

    def test_page_policy_deny(self, evaluator, register, pages, make_cookie):
        """Pages whose policy denies the cookie do not block removal."""
        key = register(make_cookie(domain="cdn.net"))
        pages.open_page("https://www.news.com/story", domains=["cdn.net"])
        assert evaluator.can_remove(key) is True

    def test_closed_page_no_longer_blocks(self, evaluator, register, pages, make_cookie):
        """Decisions reflect the pages open at evaluation time."""
        key = register(make_cookie(domain="example.com"))
        pages.open_page("https://example.com/", domains=["example.com"], ignore=True)
        assert evaluator.can_remove(key) is False

        pages.close_page("https://example.com/")
        assert evaluator.can_remove(key) is True
