"""
Page fetching with per-attempt timeouts and linear backoff retries.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import requests
import urllib3

from linkcrawler.config import CrawlSettings
from linkcrawler.errors import CrawlCancelled, FetchError

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_S = 1.0

# requests lets some urllib3 errors through unwrapped (e.g. LocationParseError
# for an overlong hostname label); invalid URLs can surface as ValueError
TRANSPORT_ERRORS = (requests.RequestException, urllib3.exceptions.HTTPError, ValueError)


@dataclass(slots=True)
class FetchResult:
    response: requests.Response
    retry_count: int


def describe_error(exc: Exception) -> str:
    """Short message for a transport failure; timeouts read as 'Timeout'."""
    if isinstance(exc, (requests.Timeout, urllib3.exceptions.TimeoutError)):
        return "Timeout"
    return str(exc) or exc.__class__.__name__


def wait(seconds: float, stop_event: Optional[threading.Event]) -> None:
    """Sleep, waking early and raising CrawlCancelled if the crawl stops."""
    if seconds <= 0:
        if stop_event is not None and stop_event.is_set():
            raise CrawlCancelled()
        return
    if stop_event is None:
        time.sleep(seconds)
    elif stop_event.wait(seconds):
        raise CrawlCancelled()


class RetryingFetcher:
    """
    GET a URL, retrying server errors and transport failures.

    Any response below 500 ends the loop at once, 4xx included. A 5xx on the
    final attempt is returned as-is; a transport failure on the final attempt
    raises FetchError with the failure's message.
    """

    def __init__(
        self,
        session: requests.Session,
        settings: CrawlSettings,
        stop_event: Optional[threading.Event] = None,
        backoff_s: float = DEFAULT_BACKOFF_S,
    ) -> None:
        self.session = session
        self.settings = settings
        self.stop_event = stop_event
        self.backoff_s = backoff_s

    def fetch(self, url: str) -> FetchResult:
        retries = self.settings.retries
        last_error = "Unknown error"

        for attempt in range(retries + 1):
            logger.debug("GET %s (attempt %d/%d)", url, attempt + 1, retries + 1)
            try:
                resp = self.session.get(
                    url,
                    timeout=self.settings.timeout,
                    headers=self.settings.request_headers,
                    proxies=self.settings.proxies,
                    allow_redirects=True,
                )
            except TRANSPORT_ERRORS as e:
                last_error = describe_error(e)
                logger.warning("Fetch failed for %s: %s", url, last_error)
            else:
                if resp.status_code < 500 or attempt == retries:
                    return FetchResult(response=resp, retry_count=attempt)
                last_error = f"Server error: {resp.status_code}"
                logger.warning("Fetch of %s returned %d", url, resp.status_code)

            if attempt < retries:
                wait(self.backoff_s * (attempt + 1), self.stop_event)

        raise FetchError(last_error, retry_count=retries)
