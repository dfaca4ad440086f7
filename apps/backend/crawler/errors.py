"""
Exception types raised by the scraping pipeline.
"""
from typing import Optional


class ScrapeError(Exception):
    """Base class for run-level scraping failures."""


class FetchError(ScrapeError):
    """
    A listing index page could not be fetched.

    Raised for network failures and non-2xx responses. Fatal for the
    current run; the next scheduled run acts as the retry.
    """

    def __init__(self, url: str, page: Optional[int] = None, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.page = page
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else (reason or "request failed")
        where = f" (page {page})" if page is not None else ""
        super().__init__(f"Failed to fetch {url}{where}: {detail}")


class ScrapeCancelled(ScrapeError):
    """The run was cancelled through its cancellation signal."""
