"""Cookie retention and removal engine.

Tracks every cookie the store reports, records cookies against the open
pages that use them, and deletes cookies the policy denies once nothing
still wants them. Deletions are batched: candidates are queued and drained
on a timer, never deleted on the event that made them candidates.

All state is owned by one CookieHunter and mutated only from scheduler
callbacks and store notifications running on the same thread.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from cookie_hunter.core.config import Settings
from cookie_hunter.core.constants import (
    CLEAN_INTERVAL_MS,
    CLEAN_JOB_NAME,
    COOKIE_REQUEST_KIND,
    RECORD_JOB_NAME,
    RECORD_SCAN_DELAY_MS,
    REMOVE_BATCH_LIMIT,
    REMOVE_PAGE_JOB_NAME,
    REMOVE_QUEUE_INTERVAL_MS,
    REMOVE_QUEUE_JOB_NAME,
    REMOVE_SCAN_DELAY_MS,
    STALE_COOKIE_GRACE_MS,
)
from cookie_hunter.core.identity import (
    cookie_url_from_entry,
    encode_cookie_name,
    identity_from_cookie,
    identity_from_url,
)
from cookie_hunter.core.logging_config import log_cookie_removal, log_sweep
from cookie_hunter.core.models import CookieChange, CookieEntry, RemovalDetails
from cookie_hunter.core.registry import CookieRegistry
from cookie_hunter.pages.page_stats import PageRegistry, PageStats, RequestStats
from cookie_hunter.policy.scopes import GLOBAL_SCOPE_KEY, ScopeRegistry
from cookie_hunter.store.cookie_store import BaseCookieStore

from .evaluator import RemovabilityEvaluator
from .queues import DebouncedPageQueue, RemovalQueue
from .scheduler import JobScheduler

logger = logging.getLogger(__name__)

ANY_NAME = "*"


def _now_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class HunterStats:
    """Snapshot of engine state."""

    registered: int
    pooled: int
    pending_removal: int
    pending_record_pages: int
    pending_remove_pages: int
    removed: int


class CookieHunter:
    """
    Cookie retention and removal engine.

    Collaborators are injected so each can be substituted in tests:
    the cookie store, scope policy, open pages, user settings and the job
    scheduler.
    """

    def __init__(
        self,
        store: BaseCookieStore,
        scopes: ScopeRegistry,
        pages: PageRegistry,
        settings: Settings,
        scheduler: JobScheduler,
        request_stats: RequestStats | None = None,
        ignored_cookies: Iterable[str] = (),
        rng: random.Random | None = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """
        Initialize the engine. Nothing happens until start() is called.

        Args:
            store: Cookie store to track and delete from
            scopes: Scope policy
            pages: Currently open pages
            settings: User settings, read on every decision
            scheduler: Scheduler for debounced and periodic jobs
            request_stats: Global request-outcome counter
            ignored_cookies: "domain|name" entries never deleted
            rng: Random source for sampling the removal queue
            clock: Returns the current time in milliseconds
        """
        self.store = store
        self.scopes = scopes
        self.pages = pages
        self.settings = settings
        self.scheduler = scheduler
        self.request_stats = request_stats or RequestStats()
        self._rng = rng or random.Random()
        self._clock = clock

        self.registry = CookieRegistry(clock=clock)
        self.evaluator = RemovabilityEvaluator(self.registry, scopes, pages)
        self.removal_queue = RemovalQueue()
        self.record_queue = DebouncedPageQueue(
            RECORD_JOB_NAME,
            RECORD_SCAN_DELAY_MS,
            self.find_and_record_page_cookies,
            scheduler,
        )
        self.remove_queue = DebouncedPageQueue(
            REMOVE_PAGE_JOB_NAME,
            REMOVE_SCAN_DELAY_MS,
            self.find_and_remove_page_cookies,
            scheduler,
        )
        self.removed_count = 0
        self._ignored = self._parse_ignored(ignored_cookies)
        self._started = False

    @staticmethod
    def _parse_ignored(entries: Iterable[str]) -> set[tuple[str, str]]:
        ignored = set()
        for entry in entries:
            domain, sep, name = entry.partition("|")
            if not sep or not domain.strip() or not name.strip():
                logger.warning("Skipping malformed ignored cookie '%s'", entry)
                continue
            ignored.add((domain.strip().lower().lstrip("."), name.strip()))
        return ignored

    # Lifecycle

    def start(self) -> None:
        """Load the store's cookies, listen for changes and arm periodic jobs."""
        if self._started:
            return
        self.registry.populate(self.store.enumerate_all())
        self.store.subscribe(self.on_cookie_changed)
        self.scheduler.schedule(
            REMOVE_QUEUE_JOB_NAME, self.process_remove_queue, REMOVE_QUEUE_INTERVAL_MS, repeating=True
        )
        self.scheduler.schedule(
            CLEAN_JOB_NAME, self.process_clean, CLEAN_INTERVAL_MS, repeating=True
        )
        self._started = True
        logger.info("Cookie hunter started with %d cookies", len(self.registry))

    def stop(self) -> None:
        """Stop listening and cancel every job. Queued work is dropped."""
        if not self._started:
            return
        self.store.unsubscribe(self.on_cookie_changed)
        self.scheduler.cancel(REMOVE_QUEUE_JOB_NAME)
        self.scheduler.cancel(CLEAN_JOB_NAME)
        self.record_queue.cancel()
        self.remove_queue.cancel()
        self._started = False
        logger.info("Cookie hunter stopped")

    @property
    def started(self) -> bool:
        return self._started

    def stats(self) -> HunterStats:
        """Return a snapshot of the engine state."""
        return HunterStats(
            registered=len(self.registry),
            pooled=self.registry.pool_size,
            pending_removal=len(self.removal_queue),
            pending_record_pages=len(self.record_queue),
            pending_remove_pages=len(self.remove_queue),
            removed=self.removed_count,
        )

    def is_ignored(self, entry: CookieEntry) -> bool:
        """True for cookies exempted from deletion regardless of policy."""
        return (entry.domain, entry.name) in self._ignored or (entry.domain, ANY_NAME) in self._ignored

    # Page scans

    def record_page_cookies(self, page: PageStats | None) -> None:
        """Queue a page for recording the cookies it uses."""
        self.record_queue.enqueue(page)

    def remove_page_cookies(self, page: PageStats | None) -> None:
        """Queue a page whose cookies should be re-evaluated for removal."""
        self.remove_queue.enqueue(page)

    def find_and_record_page_cookies(self, page: PageStats | None) -> None:
        """Record every registered cookie the page uses."""
        if page is None:
            return
        domains = page.domain_set()
        for key, entry in self.registry.items():
            if domains.matches(entry):
                self.record_page_cookie(page, key)

    def find_and_remove_page_cookies(self, page: PageStats | None) -> None:
        """Queue every registered cookie the page uses for removal."""
        if page is None:
            return
        domains = page.domain_set()
        for key, entry in self.registry.items():
            if domains.matches(entry):
                self.removal_queue.add(key)

    def record_page_cookie(self, page: PageStats, key: str) -> None:
        """
        Record one cookie against a page.

        The cookie is evaluated against the page's policy and logged on the
        page and in the global request counter. A blocked cookie is queued
        for removal when cookie deletion is enabled.
        """
        entry = self.registry.lookup(key)
        if entry is None:
            return
        blocked = self.scopes.blacklisted(page.page_url, COOKIE_REQUEST_KIND, entry.domain)

        description = "%s{%s_cookie:%s}" % (
            cookie_url_from_entry(entry),
            "session" if entry.session else "persistent",
            encode_cookie_name(entry.name),
        )
        page.record_request(COOKIE_REQUEST_KIND, description, blocked)
        self.request_stats.record(COOKIE_REQUEST_KIND, blocked)

        if blocked and self.settings.delete_cookies:
            self.removal_queue.add(key)

    # Removal

    def can_remove(self, key: str) -> bool:
        """True if nothing currently wants the cookie kept."""
        return self.evaluator.can_remove(key)

    def process_remove_queue(self) -> int:
        """
        Drain up to REMOVE_BATCH_LIMIT removal candidates.

        Each candidate leaves the queue and is re-validated before a
        deletion is issued. Candidates over the limit stay queued for the
        next run.

        Returns:
            Number of deletions issued
        """
        keys = self.removal_queue.take(REMOVE_BATCH_LIMIT, self._rng)
        issued = 0
        for key in keys:
            self.removal_queue.discard(key)

            # Setting may have changed since the cookie was queued
            if not self.settings.delete_cookies:
                continue

            entry = self.registry.lookup(key)
            if entry is None:
                continue
            if self.is_ignored(entry):
                continue
            if not self.evaluator.can_remove(key):
                continue

            url = cookie_url_from_entry(entry)
            if not url:
                continue

            logger.debug("Removing cookie %s", key)
            self.store.remove(url, entry.name, self._on_cookie_removed)
            issued += 1

        if keys:
            logger.debug(
                "Removal pass: %d examined, %d issued, %d still queued",
                len(keys), issued, len(self.removal_queue),
            )
        return issued

    def _on_cookie_removed(self, details: RemovalDetails | None) -> None:
        if details is None:
            return
        key = identity_from_url(details.url, details.name)
        self.registry.remove(key)
        self.removed_count += 1
        log_cookie_removal(details.url, details.name, self.removed_count)

    def process_clean(self) -> int:
        """
        Sweep the whole registry for cookies no page event brought up.

        Cookies allowed by the global scope are only swept when they are
        session cookies idle for longer than the user's threshold. Denied
        cookies are swept when deletion is enabled and they have not been
        seen for STALE_COOKIE_GRACE_MS.

        Returns:
            Number of cookies queued for removal
        """
        now = self._clock()
        settings = self.settings
        examined = 0
        enqueued = 0

        for key, entry in self.registry.items():
            examined += 1
            if self.is_ignored(entry):
                continue
            idle = now - entry.last_seen

            # Global scope: a cookie set under a site scope which no longer
            # exists would otherwise never be swept. can_remove() still
            # protects it while the site scope exists.
            if self.scopes.whitelisted(GLOBAL_SCOPE_KEY, COOKIE_REQUEST_KIND, entry.domain):
                if not entry.session:
                    continue
                if not settings.delete_unused_session_cookies:
                    continue
                if idle < settings.delete_unused_session_cookies_after_ms:
                    continue
            elif not settings.delete_cookies:
                continue
            elif idle < STALE_COOKIE_GRACE_MS:
                continue

            self.removal_queue.add(key)
            enqueued += 1

        if enqueued:
            log_sweep(examined, enqueued)
        logger.debug("Sweep examined %d cookies, queued %d", examined, enqueued)
        return enqueued

    # Store notifications

    def on_cookie_changed(self, change: CookieChange) -> None:
        """
        Handle a cookie added or updated in the store.

        Removals are ignored. A cookie whose value did not change only has
        its timestamp refreshed; otherwise it is recorded against every open
        page that uses it.
        """
        if change.removed:
            return

        cookie = change.cookie
        key = identity_from_cookie(cookie)
        entry = self.registry.lookup(key)
        if entry is None:
            entry, _ = self.registry.upsert(cookie)
        else:
            entry.last_seen = self._clock()
            if cookie.value == entry.value:
                return
            entry.value = cookie.value

        for page in self.pages:
            if page.domain_set().matches(entry):
                self.record_page_cookie(page, key)
