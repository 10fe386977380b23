"""Coalescing queues that absorb bursts of events into single jobs."""

from __future__ import annotations

import logging
import random
from typing import Callable, Iterator

from cookie_hunter.pages.page_stats import PageStats

from .scheduler import JobScheduler

logger = logging.getLogger(__name__)


class DebouncedPageQueue:
    """
    Buffer of pages awaiting a scan.

    Enqueueing stores the latest state of a page under its URL and re-arms
    a single named job. When the job fires, every buffered page is scanned
    once and the buffer is cleared, so pages enqueued within the same window
    share one pass.
    """

    def __init__(
        self,
        name: str,
        delay_ms: int,
        handler: Callable[[PageStats], None],
        scheduler: JobScheduler,
    ) -> None:
        self.name = name
        self.delay_ms = delay_ms
        self._handler = handler
        self._scheduler = scheduler
        self._pending: dict[str, PageStats] = {}

    def enqueue(self, page: PageStats | None) -> None:
        """Buffer a page and (re)arm the job. None is ignored."""
        if page is None:
            return
        self._pending[page.page_url] = page
        self._scheduler.schedule(self.name, self.drain, self.delay_ms, repeating=False)

    def drain(self) -> int:
        """
        Scan every buffered page and clear the buffer.

        Returns:
            Number of pages scanned
        """
        pages = list(self._pending.values())
        self._pending.clear()
        for page in pages:
            self._handler(page)
        if pages:
            logger.debug("Job %s scanned %d page(s)", self.name, len(pages))
        return len(pages)

    def cancel(self) -> None:
        """Drop buffered pages and the pending job."""
        self._pending.clear()
        self._scheduler.cancel(self.name)

    @property
    def pending(self) -> list[str]:
        """URLs of the buffered pages."""
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)


class RemovalQueue:
    """Set of cookie identity keys awaiting removal. Unordered."""

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def add(self, key: str) -> None:
        """Queue a key; queuing a pending key is a no-op."""
        self._keys.add(key)

    def discard(self, key: str) -> None:
        """Drop a key if pending."""
        self._keys.discard(key)

    def take(self, limit: int, rng: random.Random | None = None) -> list[str]:
        """
        Select up to limit keys for one removal pass.

        When more than limit keys are pending an unbiased random sample is
        chosen. Selected keys stay queued; the caller discards each one as
        it is processed.
        """
        keys = list(self._keys)
        if len(keys) > limit:
            keys = (rng or random).sample(keys, limit)
        return keys

    def clear(self) -> None:
        self._keys.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: str) -> bool:
        return key in self._keys
