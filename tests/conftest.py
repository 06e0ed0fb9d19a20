"""
Pytest fixtures: an in-memory stand-in for requests.Session.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Union

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from linkcrawler.config import CrawlRequest, CrawlSettings
from linkcrawler.events import DoneEvent, ResultEvent
from linkcrawler.scheduler import Crawler

Reply = Union[Tuple[int, str, Dict[str, str]], Exception]


def make_response(
    url: str,
    status: int = 200,
    body: str = "",
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body.encode("utf-8")
    resp.encoding = "utf-8"
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.url = url
    return resp


class FakeSession:
    """
    Serves canned GET/HEAD replies per URL and records every call.

    A URL may be given a sequence of replies; each call consumes one and the
    last one repeats. Unknown URLs answer GET with 404 and HEAD with 200.
    """

    def __init__(self) -> None:
        self.pages: Dict[str, List[Reply]] = {}
        self.heads: Dict[str, List[Reply]] = {}
        self.calls: List[Tuple[str, str, dict]] = []
        self.closed = False

    def add_page(self, url: str, body: str = "", status: int = 200,
                 content_type: str = "text/html; charset=utf-8") -> None:
        self.pages.setdefault(url, []).append((status, body, {"Content-Type": content_type}))

    def add_get_error(self, url: str, exc: Exception) -> None:
        self.pages.setdefault(url, []).append(exc)

    def add_head(self, url: str, status: int = 200, location: Optional[str] = None) -> None:
        headers = {"Location": location} if location else {}
        self.heads.setdefault(url, []).append((status, "", headers))

    def add_head_error(self, url: str, exc: Exception) -> None:
        self.heads.setdefault(url, []).append(exc)

    @staticmethod
    def _next(replies: List[Reply]) -> Reply:
        return replies.pop(0) if len(replies) > 1 else replies[0]

    def _reply(self, url: str, table: Dict[str, List[Reply]], default: Reply) -> requests.Response:
        reply = self._next(table[url]) if url in table else default
        if isinstance(reply, Exception):
            raise reply
        status, body, headers = reply
        return make_response(url, status, body, headers)

    def get(self, url: str, **kwargs) -> requests.Response:
        self.calls.append(("GET", url, kwargs))
        return self._reply(url, self.pages, (404, "", {"Content-Type": "text/html"}))

    def head(self, url: str, **kwargs) -> requests.Response:
        self.calls.append(("HEAD", url, kwargs))
        return self._reply(url, self.heads, (200, "", {}))

    def close(self) -> None:
        self.closed = True

    def urls(self, method: str) -> List[str]:
        return [url for m, url, _ in self.calls if m == method]


def html_page(*hrefs: str) -> str:
    anchors = "".join(f'<a href="{href}">link {i}</a>' for i, href in enumerate(hrefs))
    return f"<html><body>{anchors}</body></html>"


def results_of(events) -> list:
    return [e.result for e in events if isinstance(e, ResultEvent)]


def done_of(events) -> list:
    return [e for e in events if isinstance(e, DoneEvent)]


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_crawler(session):
    """Build a Crawler over the fake session with fast waits."""

    def _make(urls, **kwargs) -> Crawler:
        settings = kwargs.pop("settings", None) or CrawlSettings(retries=0)
        kwargs.setdefault("rate_limit", 1000.0)
        request = CrawlRequest(urls=list(urls), settings=settings, **kwargs)
        return Crawler(request, session=session, backoff_s=0)

    return _make
