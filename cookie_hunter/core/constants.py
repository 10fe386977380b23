"""Application constants and paths for Cookie Hunter."""

import os
from pathlib import Path

# Application metadata
APP_NAME = "CookieHunter"
APP_VERSION = "1.0.0"
CONFIG_VERSION = 1

# Base paths
APPDATA_ROOT = Path(
    os.environ.get("APPDATA") or os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
) / APP_NAME
CONFIG_DIR = APPDATA_ROOT
LOGS_DIR = APPDATA_ROOT / "logs"

# File paths
CONFIG_FILE = CONFIG_DIR / "config.json"
DEBUG_LOG_FILE = LOGS_DIR / "debug.log"
AUDIT_LOG_FILE = LOGS_DIR / "audit.log"

# Logging settings
DEBUG_LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
DEBUG_LOG_BACKUP_COUNT = 3
AUDIT_LOG_MAX_BYTES = 1 * 1024 * 1024  # 1 MB
AUDIT_LOG_BACKUP_COUNT = 5

# Registry
ENTRY_POOL_CAPACITY = 25

# Job names
RECORD_JOB_NAME = "cookieHunterPageRecord"
REMOVE_PAGE_JOB_NAME = "cookieHunterPageRemove"
REMOVE_QUEUE_JOB_NAME = "cookieHunterRemove"
CLEAN_JOB_NAME = "cookieHunterClean"
POLL_JOB_NAME = "cookieStorePoll"

# Job timings (milliseconds)
RECORD_SCAN_DELAY_MS = 1000
REMOVE_SCAN_DELAY_MS = 15 * 1000
REMOVE_QUEUE_INTERVAL_MS = 2 * 60 * 1000
CLEAN_INTERVAL_MS = 15 * 60 * 1000
STORE_POLL_INTERVAL_MS = 5 * 1000

# Maximum number of deletions issued per removal pass
REMOVE_BATCH_LIMIT = 50

# Denied cookies seen more recently than this are left alone by the sweeper
STALE_COOKIE_GRACE_MS = 2 * 60 * 60 * 1000

# Request kind used for cookie observations
COOKIE_REQUEST_KIND = "cookie"

# Default settings
DEFAULT_SETTINGS = {
    "delete_cookies": True,
    "delete_unused_session_cookies": False,
    "delete_unused_session_cookies_after": 60,
}

# Default scopes: only the global scope, denying cookies
DEFAULT_SCOPES = {
    "*": {
        "whitelist": [],
        "blacklist": ["cookie|*"],
        "default": "allow",
    },
}

# Cookies which must never be deleted, as "domain|name" ("*" matches any name)
DEFAULT_IGNORED_COOKIES = [
    "accounts.google.com|*",
    "chrome.google.com|*",
]

# Browser executable names for process detection (without ".exe")
BROWSER_EXECUTABLES = frozenset({
    "chrome",
    "chromium",
    "msedge",
    "brave",
    "opera",
    "vivaldi",
})
