"""Application entry point for Cookie Hunter.

Watches a Chromium cookie database and removes the cookies the configured
scopes deny, running on a Qt event loop.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from PyQt6.QtCore import QCoreApplication

from cookie_hunter.core.config import ConfigError, ConfigManager
from cookie_hunter.core.constants import APP_NAME, APP_VERSION, POLL_JOB_NAME, STORE_POLL_INTERVAL_MS
from cookie_hunter.core.logging_config import setup_logging
from cookie_hunter.engine.hunter import CookieHunter
from cookie_hunter.engine.scheduler import JobScheduler, QtJobScheduler
from cookie_hunter.pages.page_stats import PageRegistry
from cookie_hunter.policy.scopes import ScopeRegistry
from cookie_hunter.store.chromium_store import ChromiumCookieStore
from cookie_hunter.store.cookie_store import BaseCookieStore, CookieStoreError

logger = logging.getLogger(__name__)


def build_hunter(
    config: ConfigManager,
    store: BaseCookieStore,
    scheduler: JobScheduler,
    pages: PageRegistry | None = None,
) -> CookieHunter:
    """
    Create a CookieHunter from the application configuration.

    Args:
        config: Loaded configuration
        store: Cookie store to manage
        scheduler: Job scheduler
        pages: Open page registry (empty if None)

    Returns:
        An engine that has not been started yet
    """
    return CookieHunter(
        store=store,
        scopes=ScopeRegistry.from_config(config.scopes),
        pages=pages or PageRegistry(),
        settings=config.settings,
        scheduler=scheduler,
        ignored_cookies=config.ignored_cookies,
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cookie-hunter", description=__doc__.splitlines()[0])
    parser.add_argument("db_path", type=Path, help="Path to a Chromium 'Cookies' database")
    parser.add_argument("--config", type=Path, default=None, help="Configuration file")
    parser.add_argument("--debug", action="store_true", help="Log to the console")
    parser.add_argument(
        "--poll-interval",
        type=int,
        default=STORE_POLL_INTERVAL_MS,
        help="Milliseconds between database polls",
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Application entry point.

    Returns:
        Exit code (0 for success)
    """
    args = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging(debug_mode=args.debug)

    try:
        config = ConfigManager(config_path=args.config)
        store = ChromiumCookieStore(args.db_path)
    except (ConfigError, CookieStoreError) as e:
        logger.error("Startup failed: %s", e)
        print(f"{APP_NAME}: {e}", file=sys.stderr)
        return 1

    app = QCoreApplication(sys.argv[:1])
    scheduler = QtJobScheduler()
    hunter = build_hunter(config, store, scheduler)
    hunter.start()
    scheduler.schedule(POLL_JOB_NAME, store.poll, args.poll_interval, repeating=True)

    app.aboutToQuit.connect(hunter.stop)
    app.aboutToQuit.connect(scheduler.cancel_all)
    signal.signal(signal.SIGINT, lambda *_: app.quit())

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
