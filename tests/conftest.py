"""Shared pytest fixtures for Cookie Hunter tests."""

import json
import logging
import os
import random
import shutil
import sqlite3
import tempfile
from collections import Counter
from pathlib import Path

import pytest

# Qt needs a platform plugin even for timers; run headless
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from cookie_hunter.core.config import Settings
from cookie_hunter.core.logging_config import AUDIT_LOGGER_NAME
from cookie_hunter.core.models import Cookie
from cookie_hunter.engine.hunter import CookieHunter
from cookie_hunter.engine.scheduler import JobScheduler
from cookie_hunter.pages.page_stats import PageRegistry
from cookie_hunter.policy.scopes import ScopeRegistry
from cookie_hunter.store.cookie_store import MemoryCookieStore


class ManualScheduler(JobScheduler):
    """Scheduler that only runs jobs when a test fires them."""

    def __init__(self):
        self.jobs = {}
        self.schedule_count = Counter()

    def schedule(self, name, callback, delay_ms, repeating=False):
        self.jobs[name] = (callback, delay_ms, repeating)
        self.schedule_count[name] += 1

    def cancel(self, name):
        return self.jobs.pop(name, None) is not None

    def is_scheduled(self, name):
        return name in self.jobs

    def delay_of(self, name):
        return self.jobs[name][1]

    def fire(self, name):
        callback, _, repeating = self.jobs[name]
        if not repeating:
            del self.jobs[name]
        return callback()


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now=1_700_000_000_000.0):
        self.now = now

    def advance(self, ms):
        self.now += ms

    def __call__(self):
        return self.now


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config file path."""
    return temp_dir / "config.json"


@pytest.fixture
def valid_config_data():
    """Return valid configuration data."""
    return {
        "version": 1,
        "settings": {
            "delete_cookies": True,
            "delete_unused_session_cookies": True,
            "delete_unused_session_cookies_after": 30,
        },
        "scopes": {
            "*": {"whitelist": [], "blacklist": ["cookie|*"], "default": "allow"},
            "https://*.example.com": {"whitelist": ["cookie|example.com"], "blacklist": []},
        },
        "ignored_cookies": ["accounts.example.org|SID"],
    }


@pytest.fixture
def temp_config_with_data(temp_config_file, valid_config_data):
    """Create a temporary config file with valid data."""
    temp_config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(temp_config_file, "w", encoding="utf-8") as f:
        json.dump(valid_config_data, f)
    return temp_config_file


@pytest.fixture
def restore_logging():
    """Put root and audit logger handlers back after a test reconfigures them."""
    root = logging.getLogger()
    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    saved = (root.level, list(root.handlers), audit.level, list(audit.handlers), audit.propagate)
    yield
    for handler in root.handlers + audit.handlers:
        if handler not in saved[1] and handler not in saved[3]:
            handler.close()
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    audit.setLevel(saved[2])
    audit.handlers[:] = saved[3]
    audit.propagate = saved[4]


@pytest.fixture
def make_cookie():
    """Factory for live cookies with sensible defaults."""

    def _make(domain="example.com", name="id", value="a", path="/", secure=False, session=False):
        return Cookie(
            domain=domain,
            path=path,
            name=name,
            value=value,
            secure=secure,
            session=session,
        )

    return _make


@pytest.fixture
def scheduler():
    """Manual job scheduler."""
    return ManualScheduler()


@pytest.fixture
def clock():
    """Hand-driven millisecond clock."""
    return FakeClock()


@pytest.fixture
def settings():
    """Settings with cookie deletion enabled."""
    return Settings(
        delete_cookies=True,
        delete_unused_session_cookies=False,
        delete_unused_session_cookies_after=60,
    )


@pytest.fixture
def scopes():
    """Scope registry whose global scope denies cookies."""
    registry = ScopeRegistry()
    registry.global_scope.deny("cookie", "*")
    return registry


@pytest.fixture
def pages():
    """Empty open page registry."""
    return PageRegistry()


@pytest.fixture
def store():
    """Empty in-memory cookie store."""
    return MemoryCookieStore()


@pytest.fixture
def hunter(store, scopes, pages, settings, scheduler, clock):
    """Cookie hunter wired to test doubles, not started."""
    return CookieHunter(
        store=store,
        scopes=scopes,
        pages=pages,
        settings=settings,
        scheduler=scheduler,
        ignored_cookies=["accounts.example.org|*"],
        rng=random.Random(1234),
        clock=clock,
    )


CHROMIUM_EPOCH_OFFSET = 11644473600


def unix_to_chromium_time(unix_seconds: int) -> int:
    """Convert Unix timestamp to Chromium microseconds since 1601."""
    return (unix_seconds + CHROMIUM_EPOCH_OFFSET) * 1_000_000


# Unix timestamp 1893456000 = 2030-01-01 00:00:00 UTC
EXPIRES_2030 = unix_to_chromium_time(1893456000)


def _insert_cookie(
    db_path: Path,
    host_key: str,
    name: str,
    value: str = "v",
    path: str = "/",
    is_secure: int = 0,
    expires_utc: int = EXPIRES_2030,
    encrypted_value: bytes = b"",
) -> None:
    """Insert one row into a Chromium cookies table."""
    conn = sqlite3.connect(db_path)
    conn.execute(
        """
        INSERT INTO cookies (
            creation_utc, host_key, name, value, encrypted_value,
            path, expires_utc, is_secure, is_httponly, last_access_utc
        ) VALUES (0, ?, ?, ?, ?, ?, ?, ?, 0, 0)
        """,
        (host_key, name, value, encrypted_value, path, expires_utc, is_secure),
    )
    conn.commit()
    conn.close()


def _update_cookie_value(db_path: Path, host_key: str, name: str, value: str) -> None:
    """Overwrite the value of matching rows."""
    conn = sqlite3.connect(db_path)
    conn.execute("UPDATE cookies SET value = ? WHERE host_key = ? AND name = ?", (value, host_key, name))
    conn.commit()
    conn.close()


def _count_cookies(db_path: Path) -> int:
    """Count rows in the cookies table."""
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute("SELECT COUNT(*) FROM cookies").fetchone()[0]
    finally:
        conn.close()


@pytest.fixture
def chromium_cookie_db(tmp_path: Path) -> Path:
    """Create a Chromium cookies database with a few cookies."""
    db_path = tmp_path / "Cookies"

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE cookies (
            creation_utc INTEGER NOT NULL,
            host_key TEXT NOT NULL,
            name TEXT NOT NULL,
            value TEXT NOT NULL,
            encrypted_value BLOB NOT NULL DEFAULT X'',
            path TEXT NOT NULL,
            expires_utc INTEGER NOT NULL,
            is_secure INTEGER NOT NULL,
            is_httponly INTEGER NOT NULL,
            last_access_utc INTEGER NOT NULL
        )
    """)
    conn.commit()
    conn.close()

    _insert_cookie(db_path, ".google.com", "NID", value="n1", is_secure=1)
    _insert_cookie(db_path, "accounts.google.com", "LSID", value="l1", is_secure=1, path="/accounts")
    _insert_cookie(db_path, ".github.com", "_gh_sess", value="g1", expires_utc=0)
    _insert_cookie(db_path, "example.com", "session_id", value="", encrypted_value=b"\x01\x02")
    return db_path


@pytest.fixture
def insert_cookie():
    """Row inserter for a Chromium cookies table."""
    return _insert_cookie


@pytest.fixture
def update_cookie_value():
    """Row value updater for a Chromium cookies table."""
    return _update_cookie_value


@pytest.fixture
def count_cookies():
    """Row counter for a Chromium cookies table."""
    return _count_cookies
