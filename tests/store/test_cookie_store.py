"""Tests for the in-memory cookie store."""

import pytest

from cookie_hunter.core.models import RemovalDetails
from cookie_hunter.store.cookie_store import BaseCookieStore, MemoryCookieStore


@pytest.fixture
def changes(store):
    """Record change notifications from the store fixture."""
    received = []
    store.subscribe(received.append)
    return received


class TestBaseCookieStore:
    """Tests for the abstract interface."""

    def test_cannot_instantiate(self):
        """Stores must implement enumerate_all and remove."""
        with pytest.raises(TypeError):
            BaseCookieStore()

    def test_subscribe_once(self, store, make_cookie):
        """A listener subscribed twice is notified once."""
        received = []
        store.subscribe(received.append)
        store.subscribe(received.append)

        store.set_cookie(make_cookie())

        assert len(received) == 1

    def test_unsubscribe(self, store, changes, make_cookie):
        """Unsubscribed listeners are not notified."""
        store.unsubscribe(changes.append)
        store.unsubscribe(changes.append)

        store.set_cookie(make_cookie())

        assert changes == []


class TestMemoryCookieStore:
    """Tests for MemoryCookieStore."""

    def test_initial_cookies(self, make_cookie):
        """Cookies passed at construction are enumerated."""
        store = MemoryCookieStore([make_cookie(name="a"), make_cookie(name="b")])
        assert sorted(c.name for c in store.enumerate_all()) == ["a", "b"]

    def test_set_cookie_notifies(self, store, changes, make_cookie):
        """set_cookie() stores and reports an addition."""
        cookie = make_cookie()
        store.set_cookie(cookie, cause="overwrite")

        assert store.get("http://example.com/", "id") == cookie
        assert changes[0].cookie == cookie
        assert changes[0].removed is False
        assert changes[0].cause == "overwrite"

    def test_same_identity_overwrites(self, store, make_cookie):
        """Cookies with the same identity replace each other."""
        store.set_cookie(make_cookie(value="a"))
        store.set_cookie(make_cookie(domain=".Example.com", value="b"))

        assert len(store) == 1
        assert store.get("http://example.com/", "id").value == "b"

    def test_delete_cookie_notifies_removal(self, store, changes, make_cookie):
        """delete_cookie() reports a removal."""
        cookie = make_cookie()
        store.set_cookie(cookie)

        assert store.delete_cookie(cookie, cause="expired") is True
        assert store.delete_cookie(cookie) is False
        assert changes[-1].removed is True
        assert changes[-1].cause == "expired"

    def test_remove_acknowledges(self, store, changes, make_cookie):
        """remove() deletes by URL and name and calls back with details."""
        store.set_cookie(make_cookie(secure=True, path="/app"))
        results = []

        store.remove("https://example.com/app", "id", results.append)

        assert results == [RemovalDetails(url="https://example.com/app", name="id")]
        assert len(store) == 0
        assert changes[-1].removed is True

    def test_remove_missing_calls_back_none(self, store, make_cookie):
        """Deleting nothing is reported as None."""
        store.set_cookie(make_cookie(secure=False))
        results = []

        store.remove("https://example.com/", "id", results.append)

        assert results == [None]
        assert len(store) == 1

    def test_remove_without_callback(self, store, make_cookie):
        """The callback is optional."""
        store.set_cookie(make_cookie())
        store.remove("http://example.com/", "id")
        assert len(store) == 0

    def test_remove_path_with_query_characters(self, store, make_cookie):
        """Paths containing "?" or "#" are matched verbatim."""
        store.set_cookie(make_cookie(path="/a?b"))
        store.set_cookie(make_cookie(path="/a#b"))
        results = []

        store.remove("http://example.com/a?b", "id", results.append)

        assert results == [RemovalDetails(url="http://example.com/a?b", name="id")]
        assert len(store) == 1
