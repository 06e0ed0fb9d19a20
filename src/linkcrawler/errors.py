"""
Exception types raised by the crawler.
"""
from __future__ import annotations


class CrawlerError(Exception):
    """Base class for crawler errors."""


class ConfigError(CrawlerError, ValueError):
    """Malformed crawl request or settings."""


class FetchError(CrawlerError):
    """A page could not be fetched after all retry attempts."""

    def __init__(self, message: str, retry_count: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.retry_count = retry_count


class CrawlCancelled(CrawlerError):
    """Raised out of a wait when the crawl has been cancelled."""
