"""
Redirect chain resolution using non-following HEAD requests.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import urljoin

import requests

from linkcrawler.config import DEFAULT_USER_AGENT, MAX_REDIRECTS, REDIRECT_TIMEOUT_S
from linkcrawler.fetcher import TRANSPORT_ERRORS, describe_error
from linkcrawler.models import RedirectInfo, RedirectStep

logger = logging.getLogger(__name__)

TOO_MANY_REDIRECTS = "Too many redirects"


class RedirectResolver:
    """Walks a URL's redirect chain one hop at a time."""

    def __init__(
        self,
        session: requests.Session,
        timeout: float = REDIRECT_TIMEOUT_S,
        max_redirects: int = MAX_REDIRECTS,
        headers: Optional[Dict[str, str]] = None,
        proxies: Optional[Dict[str, str]] = None,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.headers = headers or {"User-Agent": DEFAULT_USER_AGENT}
        self.proxies = proxies

    def resolve(self, url: str) -> RedirectInfo:
        chain: List[RedirectStep] = []
        current = url
        hops = 0

        while hops < self.max_redirects:
            try:
                resp = self.session.head(
                    current,
                    timeout=self.timeout,
                    headers=self.headers,
                    proxies=self.proxies,
                    allow_redirects=False,
                )
            except TRANSPORT_ERRORS as e:
                error = describe_error(e)
                logger.debug("HEAD %s failed: %s", current, error)
                return RedirectInfo(tuple(chain), current, 0, error)

            chain.append(RedirectStep(current, resp.status_code))

            location = resp.headers.get("location")
            if 300 <= resp.status_code < 400 and location:
                try:
                    current = urljoin(current, location)
                except ValueError:
                    return RedirectInfo(
                        tuple(chain), current, 0, f"Invalid redirect target: {location}"
                    )
                hops += 1
                continue

            return RedirectInfo(tuple(chain), current, resp.status_code)

        return RedirectInfo(tuple(chain), current, 0, TOO_MANY_REDIRECTS)
