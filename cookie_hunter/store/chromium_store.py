"""Cookie store backed by a Chromium cookie database."""

from __future__ import annotations

import logging
import shutil
import sqlite3
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from cookie_hunter.core.identity import identity_from_cookie, normalize_cookie_domain, split_cookie_url
from cookie_hunter.core.models import Cookie, CookieChange, RemovalDetails

from .cookie_store import BaseCookieStore, CookieStoreError, RemovalCallback
from .process_gate import ProcessGate

logger = logging.getLogger(__name__)

# Chromium timestamps count microseconds from 1601-01-01
CHROMIUM_EPOCH_OFFSET = 11644473600

REQUIRED_COLUMNS = frozenset({"host_key", "name", "value", "path", "is_secure", "expires_utc"})


def chromium_time_to_datetime(microseconds: int) -> datetime | None:
    """
    Convert a Chromium timestamp to datetime.

    Returns:
        datetime in UTC, or None for session cookies (value 0)
    """
    if not microseconds:
        return None
    try:
        seconds = (microseconds / 1_000_000) - CHROMIUM_EPOCH_OFFSET
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OSError, OverflowError, ValueError):
        logger.debug("Invalid Chromium timestamp: %d", microseconds)
        return None


@contextmanager
def _read_copy(db_path: Path) -> Iterator[Path]:
    """Yield a temporary copy of a database and its WAL file."""
    with tempfile.TemporaryDirectory(prefix="cookiehunter-") as temp_dir:
        copy_path = Path(temp_dir) / db_path.name
        shutil.copy2(db_path, copy_path)
        wal_path = Path(str(db_path) + "-wal")
        if wal_path.exists():
            shutil.copy2(wal_path, Path(str(copy_path) + "-wal"))
        yield copy_path


class ChromiumCookieStore(BaseCookieStore):
    """
    Cookie store reading and deleting rows of a Chromium "cookies" table.

    Chromium does not notify other processes of cookie changes, so changes
    are detected by poll(), which diffs the table against the previous read.
    Reads go through a temporary copy of the database so a running browser
    never blocks them; deletions write to the database itself.
    """

    def __init__(self, db_path: Path, process_gate: ProcessGate | None = None) -> None:
        """
        Open a cookie database.

        Args:
            db_path: Path to the Chromium "Cookies" file
            process_gate: Lock check run before each deletion

        Raises:
            CookieStoreError: If the database is missing or has no usable
                cookies table
        """
        super().__init__()
        self.db_path = Path(db_path)
        self.process_gate = process_gate or ProcessGate()
        self._snapshot: dict[str, Cookie] = {}
        if not self.db_path.exists():
            raise CookieStoreError(f"Cookie database not found: {self.db_path}")
        self._verify_schema()

    def _verify_schema(self) -> None:
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
            try:
                columns = {row[1] for row in conn.execute("PRAGMA table_info(cookies)")}
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise CookieStoreError(f"Cannot read {self.db_path}: {e}") from e

        if not columns:
            raise CookieStoreError(f"No cookies table in {self.db_path}")
        missing = REQUIRED_COLUMNS - columns
        if missing:
            raise CookieStoreError(
                f"Missing columns in {self.db_path}: {', '.join(sorted(missing))}"
            )
        self._has_encrypted_value = "encrypted_value" in columns

    def _read(self) -> dict[str, Cookie]:
        """Read every cookie, keyed by identity."""
        select = "SELECT host_key, name, value, path, is_secure, expires_utc"
        if self._has_encrypted_value:
            select += ", encrypted_value"
        cookies: dict[str, Cookie] = {}

        with _read_copy(self.db_path) as copy_path:
            conn = sqlite3.connect(f"file:{copy_path}?mode=ro", uri=True)
            conn.row_factory = sqlite3.Row
            try:
                for row in conn.execute(select + " FROM cookies"):
                    value = row["value"] or ""
                    # Encrypted values are opaque but still change when the cookie does
                    if not value and self._has_encrypted_value and row["encrypted_value"]:
                        value = bytes(row["encrypted_value"]).hex()
                    expires = chromium_time_to_datetime(row["expires_utc"])
                    cookie = Cookie(
                        domain=row["host_key"],
                        path=row["path"],
                        name=row["name"],
                        value=value,
                        secure=bool(row["is_secure"]),
                        session=expires is None,
                        expires=expires,
                    )
                    cookies[identity_from_cookie(cookie)] = cookie
            finally:
                conn.close()
        return cookies

    def enumerate_all(self) -> list[Cookie]:
        try:
            self._snapshot = self._read()
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to read cookies from %s: %s", self.db_path, e)
            return []
        logger.debug("Read %d cookies from %s", len(self._snapshot), self.db_path)
        return list(self._snapshot.values())

    def poll(self) -> int:
        """
        Re-read the database and notify subscribers of differences.

        Returns:
            Number of change notifications sent
        """
        try:
            current = self._read()
        except (sqlite3.Error, OSError) as e:
            logger.warning("Cookie poll of %s failed: %s", self.db_path, e)
            return 0

        previous = self._snapshot
        self._snapshot = current
        changes = 0

        for key, cookie in current.items():
            old = previous.get(key)
            if old is None or old.value != cookie.value:
                self._notify(CookieChange(cookie=cookie, removed=False, cause="poll"))
                changes += 1
        for key, cookie in previous.items():
            if key not in current:
                self._notify(CookieChange(cookie=cookie, removed=True, cause="poll"))
                changes += 1
        return changes

    def remove(self, url: str, name: str, callback: RemovalCallback | None = None) -> None:
        details = self._delete(url, name)
        if callback is not None:
            callback(details)

    def _delete(self, url: str, name: str) -> RemovalDetails | None:
        parts = split_cookie_url(url)
        if parts is None:
            return None
        secure, host, path = parts

        report = self.process_gate.check_lock(self.db_path)
        if report.is_locked:
            processes = ", ".join(report.blocking_processes) or "unknown process"
            logger.warning("Cannot remove cookie %s: %s locked by %s", name, self.db_path, processes)
            return None

        try:
            conn = sqlite3.connect(str(self.db_path), timeout=5.0, isolation_level=None)
        except sqlite3.Error as e:
            logger.error("Cannot open %s: %s", self.db_path, e)
            return None
        try:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute(
                    "DELETE FROM cookies"
                    " WHERE host_key IN (?, ?) AND name = ? AND path = ? AND is_secure = ?",
                    (host, "." + host, name, path, int(secure)),
                )
                deleted = cursor.rowcount
                cursor.execute("COMMIT")
            except sqlite3.Error:
                cursor.execute("ROLLBACK")
                raise
        except sqlite3.Error as e:
            logger.error("Failed to remove cookie %s for %s: %s", name, url, e)
            return None
        finally:
            conn.close()

        if deleted <= 0:
            return None

        for key, cookie in list(self._snapshot.items()):
            if (
                cookie.name == name
                and cookie.path == path
                and cookie.secure == secure
                and normalize_cookie_domain(cookie.domain) == host
            ):
                del self._snapshot[key]
                self._notify(CookieChange(cookie=cookie, removed=True, cause="explicit"))
        return RemovalDetails(url=url, name=name)
