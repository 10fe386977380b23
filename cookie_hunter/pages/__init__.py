"""Open page bookkeeping for Cookie Hunter."""

from cookie_hunter.pages.page_stats import PageRegistry, PageStats, RequestRecord, RequestStats

__all__ = ["PageRegistry", "PageStats", "RequestRecord", "RequestStats"]
