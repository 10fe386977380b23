"""Browser process gate for cookie database writes."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path

import psutil

from cookie_hunter.core.constants import BROWSER_EXECUTABLES

logger = logging.getLogger(__name__)

# Mapping of path fragments to browser executables
BROWSER_PATH_MAPPINGS = {
    "google-chrome": "chrome",
    "google\\chrome": "chrome",
    "chromium": "chromium",
    "microsoft\\edge": "msedge",
    "microsoft-edge": "msedge",
    "brave": "brave",
    "opera": "opera",
    "vivaldi": "vivaldi",
    "chrome": "chrome",
}

LOCK_CHECK_TIMEOUT = 0.1  # seconds


def _executable_name(process_name: str) -> str:
    name = process_name.lower()
    return name[:-4] if name.endswith(".exe") else name


@dataclass
class LockReport:
    """Result of a lock check on a cookie database."""

    db_path: Path
    is_locked: bool
    blocking_processes: list[str] = field(default_factory=list)

    @property
    def can_proceed(self) -> bool:
        """Return True if the database accepts writes."""
        return not self.is_locked


class ProcessGate:
    """Detects whether a cookie database is held by a running browser."""

    def check_lock(self, db_path: Path) -> LockReport:
        """
        Check if a database accepts a write transaction right now.

        Args:
            db_path: Path to the cookie database

        Returns:
            LockReport with lock status and likely blocking processes
        """
        if not db_path.exists():
            return LockReport(db_path=db_path, is_locked=False)

        is_locked = self._is_write_locked(db_path)
        blocking = self._find_blocking_processes(db_path) if is_locked else []
        return LockReport(db_path=db_path, is_locked=is_locked, blocking_processes=blocking)

    def get_running_browsers(self) -> set[str]:
        """
        Get the set of currently running browser executables.

        Returns:
            Set of executable names without extension (e.g., {"chrome"})
        """
        browsers = set()
        try:
            for proc in psutil.process_iter(["name"]):
                try:
                    name = proc.info["name"]
                    if name and _executable_name(name) in BROWSER_EXECUTABLES:
                        browsers.add(_executable_name(name))
                except (psutil.NoSuchProcess, psutil.AccessDenied):
                    continue
        except psutil.Error as e:
            logger.warning("Error enumerating processes: %s", e)
        return browsers

    def _is_write_locked(self, db_path: Path) -> bool:
        try:
            conn = sqlite3.connect(str(db_path), timeout=LOCK_CHECK_TIMEOUT)
        except sqlite3.Error as e:
            logger.debug("Could not open %s for lock check: %s", db_path, e)
            return True
        try:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute("ROLLBACK")
            return False
        except sqlite3.OperationalError as e:
            logger.debug("Lock check on %s failed: %s", db_path, e)
            return True
        finally:
            conn.close()

    def _find_blocking_processes(self, db_path: Path) -> list[str]:
        """
        Find browser processes likely holding the database.

        Args:
            db_path: Path to the locked database

        Returns:
            Browser executable names that may be blocking
        """
        db_path_lower = str(db_path).lower()
        running = self.get_running_browsers()

        for fragment, exe in BROWSER_PATH_MAPPINGS.items():
            if fragment in db_path_lower:
                return [exe] if exe in running else []

        # Unknown browser: report every running browser
        return sorted(running)
