"""Tests for core data models."""

from dataclasses import FrozenInstanceError

import pytest

from cookie_hunter.core.models import Cookie, CookieChange, CookieEntry


class TestCookie:
    """Tests for Cookie dataclass."""

    def test_defaults(self):
        """Cookies default to session, insecure and empty value."""
        cookie = Cookie(domain="example.com", path="/", name="id")
        assert cookie.session is True
        assert cookie.secure is False
        assert cookie.value == ""
        assert cookie.expires is None

    def test_frozen(self):
        """Cookies are immutable."""
        cookie = Cookie(domain="example.com", path="/", name="id")
        with pytest.raises(FrozenInstanceError):
            cookie.value = "x"

    def test_change_defaults(self):
        """Changes default to additions."""
        change = CookieChange(cookie=Cookie(domain="a.com", path="/", name="n"))
        assert change.removed is False


class TestCookieEntry:
    """Tests for CookieEntry."""

    def test_set_from_wildcard_cookie(self, make_cookie):
        """Leading dots mark any-subdomain cookies and are stripped."""
        entry = CookieEntry(make_cookie(domain=".Example.com", secure=True, session=True), now=42.0)

        assert entry.any_subdomain is True
        assert entry.domain == "example.com"
        assert entry.secure is True
        assert entry.session is True
        assert entry.last_seen == 42.0

    def test_host_only_cookie(self, make_cookie):
        """Cookies without a leading dot are host-only."""
        entry = CookieEntry(make_cookie(domain="example.com"))
        assert entry.any_subdomain is False

    def test_unset_then_reuse(self, make_cookie):
        """A retired entry can be refilled from another cookie."""
        entry = CookieEntry(make_cookie(name="a", value="1"), now=1.0)
        entry.unset()
        assert entry.name == ""
        assert entry.value == ""

        entry.set(make_cookie(domain="other.org", name="b", value="2"), now=2.0)
        assert (entry.domain, entry.name, entry.value, entry.last_seen) == ("other.org", "b", "2", 2.0)

    def test_slots(self, make_cookie):
        """Entries reject unknown attributes."""
        entry = CookieEntry(make_cookie())
        with pytest.raises(AttributeError):
            entry.extra = 1

    def test_repr(self, make_cookie):
        """repr shows URL and name."""
        entry = CookieEntry(make_cookie(secure=True))
        assert repr(entry) == "<CookieEntry https://example.com/ 'id'>"
