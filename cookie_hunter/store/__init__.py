"""Cookie store adapters for Cookie Hunter."""

from cookie_hunter.store.cookie_store import BaseCookieStore, CookieStoreError, MemoryCookieStore
from cookie_hunter.store.chromium_store import ChromiumCookieStore
from cookie_hunter.store.process_gate import LockReport, ProcessGate

__all__ = [
    "BaseCookieStore",
    "CookieStoreError",
    "MemoryCookieStore",
    "ChromiumCookieStore",
    "LockReport",
    "ProcessGate",
]
