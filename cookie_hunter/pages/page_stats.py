"""Per-page request bookkeeping for Cookie Hunter."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from cookie_hunter.core.matching import DomainSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestRecord:
    """One request observed on a page."""

    kind: str
    description: str
    blocked: bool


@dataclass
class PageStats:
    """
    State of one open page.

    Tracks the domains the page has issued requests to and whether the page
    is exempt from cookie deletion.
    """

    page_url: str
    domains: set[str] = field(default_factory=set)
    ignore: bool = False
    requests: list[RequestRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.domains = {domain.lower().lstrip(".") for domain in self.domains}

    def add_domain(self, domain: str) -> None:
        """Record a domain the page has contacted."""
        self.domains.add(domain.lower().lstrip("."))

    def domain_set(self) -> DomainSet:
        """Return a delimited membership view of the page's domains."""
        return DomainSet(self.domains)

    def record_request(self, kind: str, description: str, blocked: bool) -> None:
        """Record a request observed on this page."""
        self.requests.append(RequestRecord(kind=kind, description=description, blocked=blocked))


class PageRegistry:
    """Mapping of page URL to the PageStats of every open page."""

    def __init__(self) -> None:
        self._pages: dict[str, PageStats] = {}

    def open_page(
        self,
        page_url: str,
        domains: Iterable[str] = (),
        ignore: bool = False,
    ) -> PageStats:
        """
        Register a page, or return the existing one for the same URL.

        Args:
            page_url: URL of the page
            domains: Domains the page has contacted so far
            ignore: True for pages exempt from cookie deletion

        Returns:
            PageStats for the page
        """
        page = self._pages.get(page_url)
        if page is None:
            page = PageStats(page_url=page_url, ignore=ignore)
            self._pages[page_url] = page
            logger.debug("Opened page %s", page_url)
        for domain in domains:
            page.add_domain(domain)
        return page

    def close_page(self, page_url: str) -> PageStats | None:
        """Forget a page and return its last state, if it was open."""
        page = self._pages.pop(page_url, None)
        if page is not None:
            logger.debug("Closed page %s", page_url)
        return page

    def get(self, page_url: str) -> PageStats | None:
        """Return the PageStats for a URL, if open."""
        return self._pages.get(page_url)

    def __iter__(self) -> Iterator[PageStats]:
        # Snapshot so pages may close while a scan is running
        return iter(list(self._pages.values()))

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, page_url: str) -> bool:
        return page_url in self._pages


class RequestStats:
    """Global counter of allowed and blocked requests per kind."""

    def __init__(self) -> None:
        self._allowed: dict[str, int] = defaultdict(int)
        self._blocked: dict[str, int] = defaultdict(int)

    def record(self, kind: str, blocked: bool) -> None:
        """Count one request outcome."""
        if blocked:
            self._blocked[kind] += 1
        else:
            self._allowed[kind] += 1

    def allowed(self, kind: str) -> int:
        """Number of allowed requests of a kind."""
        return self._allowed.get(kind, 0)

    def blocked(self, kind: str) -> int:
        """Number of blocked requests of a kind."""
        return self._blocked.get(kind, 0)

    def reset(self) -> None:
        """Clear all counters."""
        self._allowed.clear()
        self._blocked.clear()
