"""
Breadth-first frontier scheduler: the crawl engine.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Deque, Iterator, List, Mapping, Optional, Set

import requests

from linkcrawler.config import REDIRECT_TIMEOUT_S, CrawlRequest
from linkcrawler.errors import ConfigError, CrawlCancelled, FetchError
from linkcrawler.events import (
    CrawlEvent,
    DoneEvent,
    ErrorEvent,
    LogEvent,
    LogType,
    ProgressEvent,
    ResultEvent,
)
from linkcrawler.fetcher import DEFAULT_BACKOFF_S, RetryingFetcher, wait
from linkcrawler.gate import OutboundGate, is_allowed_url
from linkcrawler.links import extract_links
from linkcrawler.models import (
    CrawlBudget,
    CrawlState,
    FilterSet,
    FrontierItem,
    LinkInfo,
    LinkResult,
    LinkType,
    format_redirect_chain,
)
from linkcrawler.redirects import RedirectResolver
from linkcrawler.urls import hostname_of, normalize_url

logger = logging.getLogger(__name__)

# Bodies of these types cannot hold links; anything else goes to the extractor
BINARY_CONTENT_TYPES = ("image/", "audio/", "video/", "font/", "application/pdf", "application/zip")


def _page_links(resp: requests.Response, url: str) -> List[LinkInfo]:
    """Extract links from a fetched page, skipping binary bodies."""
    content_type = (resp.headers.get("content-type") or "").lower().strip()
    if content_type.startswith(BINARY_CONTENT_TYPES):
        logger.debug("Not parsing %s (%s)", url, content_type)
        return []
    return extract_links(resp.text, url)


class Crawler:
    """
    One crawl invocation.

    `events()` returns a lazy, non-restartable generator of crawl events. The
    crawl runs only while the generator is being drained; `cancel()` (from any
    thread) or closing the generator stops it at the next loop boundary or
    wait.

    Args:
        request: The validated crawl request.
        session: HTTP session to use. When omitted, one is created and closed
                 when the crawl ends; an injected session stays owned by the
                 caller.
        gate: Outbound predicate applied to every seed URL.
        backoff_s: Base delay between fetch retries.
    """

    def __init__(
        self,
        request: CrawlRequest,
        session: Optional[requests.Session] = None,
        gate: OutboundGate = is_allowed_url,
        backoff_s: float = DEFAULT_BACKOFF_S,
    ) -> None:
        self.request = request
        self.budget = CrawlBudget.from_request(request)
        self.gate = gate
        self.backoff_s = backoff_s

        self._session = session
        self._owns_session = session is None
        self._stop = threading.Event()
        self._started = False

        self.state = CrawlState.IDLE
        self.frontier: Deque[FrontierItem] = deque()
        self.visited: Set[str] = set()
        self.results: List[LinkResult] = []
        self.filters = FilterSet(same_domain_only=request.same_domain_only)
        self._fetches = 0

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def cancel(self) -> None:
        """Ask the crawl to stop; safe to call from another thread."""
        self._stop.set()

    def events(self) -> Iterator[CrawlEvent]:
        if self._started:
            raise RuntimeError("A crawl can only be run once")
        self._started = True
        return self._run()

    def _run(self) -> Iterator[CrawlEvent]:
        session = self._session or requests.Session()
        try:
            self.state = CrawlState.RUNNING
            yield from self._crawl(session)
            if self.cancelled:
                self.state = CrawlState.CANCELLED
                logger.info("Crawl cancelled after %d results", len(self.results))
            else:
                self.state = CrawlState.COMPLETED
                yield LogEvent(f"Crawl complete: {len(self.results)} links found", LogType.SUCCESS)
                yield DoneEvent(total_links=len(self.results), visited=len(self.visited))
        except CrawlCancelled:
            self.state = CrawlState.CANCELLED
            logger.info("Crawl cancelled after %d results", len(self.results))
        except (GeneratorExit, KeyboardInterrupt):
            self._stop.set()
            self.state = CrawlState.CANCELLED
            raise
        except Exception as e:
            logger.exception("Crawl failed")
            self.state = CrawlState.FAILED
            yield ErrorEvent(str(e) or e.__class__.__name__)
        finally:
            if self._owns_session:
                session.close()

    def _seed(self) -> Iterator[CrawlEvent]:
        base_domains: Set[str] = set()

        for raw in self.request.urls:
            url = normalize_url(raw)
            if not url:
                logger.warning("Dropping invalid seed URL: %r", raw)
                yield LogEvent(f"Skipping invalid URL: {raw}", LogType.ERROR)
                continue
            if not self.gate(url):
                logger.warning("Seed URL rejected by outbound gate: %s", url)
                yield LogEvent(f"Skipping disallowed URL: {url}", LogType.ERROR)
                continue

            host = hostname_of(url)
            if host:
                base_domains.add(host)
            if url not in self.visited:
                self.visited.add(url)
                self.frontier.append(FrontierItem(url=url, depth=0))

        self.filters = FilterSet.from_request(self.request, frozenset(base_domains))
        if self.request.url_filter and self.filters.regex is None:
            yield LogEvent("Ignoring invalid or overlong URL filter", LogType.ERROR)

    def _crawl(self, session: requests.Session) -> Iterator[CrawlEvent]:
        settings = self.request.settings
        fetcher = RetryingFetcher(session, settings, stop_event=self._stop, backoff_s=self.backoff_s)
        resolver = RedirectResolver(
            session,
            timeout=min(settings.timeout, REDIRECT_TIMEOUT_S),
            headers=settings.request_headers,
            proxies=settings.proxies,
        )

        yield from self._seed()
        yield LogEvent(f"Starting crawl with {len(self.frontier)} seed URL(s)", LogType.INFO)

        while self.frontier and len(self.results) < self.budget.max_urls and not self.cancelled:
            item = self.frontier.popleft()

            if not self.filters.accepts(item.url):
                logger.debug("Filtered out %s", item.url)
                continue

            yield ProgressEvent(
                done=len(self.results),
                total=len(self.results) + len(self.frontier) + 1,
                current_url=item.url,
            )
            yield LogEvent(f"Fetching {item.url} (depth: {item.depth})", LogType.PROGRESS)

            if self.cancelled:
                break
            if self._fetches > 0:
                wait(self.budget.delay_s, self._stop)
            self._fetches += 1

            try:
                fetched = fetcher.fetch(item.url)
            except FetchError as e:
                if self.cancelled:
                    break
                yield from self._page_failed(item, e.message, e.retry_count)
                continue

            if self.cancelled:
                break

            try:
                links = _page_links(fetched.response, item.url)
            except Exception as e:
                logger.exception("Link extraction failed for %s", item.url)
                yield from self._page_failed(item, str(e) or e.__class__.__name__, fetched.retry_count)
                continue
            yield LogEvent(f"Found {len(links)} links on {item.url}", LogType.SUCCESS)

            for link in links:
                if len(self.results) >= self.budget.max_urls or self.cancelled:
                    break
                if not self.filters.accepts(link.target_url):
                    continue

                result = self._resolve(resolver, item, link, fetched.retry_count)
                # In-flight resolution finished after cancel: discard
                if self.cancelled:
                    break

                self.results.append(result)
                yield ResultEvent(result)

                self._maybe_enqueue(item, link)
                wait(self.budget.delay_s / 2, self._stop)

    def _resolve(
        self,
        resolver: RedirectResolver,
        item: FrontierItem,
        link: LinkInfo,
        retry_count: int,
    ) -> LinkResult:
        info = resolver.resolve(link.target_url)
        return LinkResult(
            source_url=item.url,
            target_url=link.target_url,
            status=info.final_status,
            redirect_chain=format_redirect_chain(info.chain),
            type=LinkType.INTERNAL if link.is_internal else LinkType.EXTERNAL,
            anchor_text=link.anchor_text,
            rel=link.rel,
            depth=item.depth,
            error=info.error,
            retry_count=retry_count,
            final_url=info.final_url,
        )

    def _maybe_enqueue(self, item: FrontierItem, link: LinkInfo) -> None:
        if not (self.request.recursive and link.is_internal):
            return
        if item.depth >= self.budget.max_depth or link.target_url in self.visited:
            return
        if not self.filters.may_follow(link.target_url):
            return

        self.visited.add(link.target_url)
        self.frontier.append(FrontierItem(
            url=link.target_url,
            depth=item.depth + 1,
            source_url=item.url,
        ))

    def _page_failed(self, item: FrontierItem, message: str, retry_count: int) -> Iterator[CrawlEvent]:
        result = LinkResult(
            source_url=item.source_url or item.url,
            target_url=item.url,
            status=0,
            type=LinkType.UNKNOWN,
            depth=item.depth,
            error=message,
            retry_count=retry_count,
        )
        self.results.append(result)
        yield ResultEvent(result)
        yield LogEvent(f"Error fetching {item.url}: {message}", LogType.ERROR)


def stream_crawl(
    payload: Mapping[str, Any],
    session: Optional[requests.Session] = None,
    gate: OutboundGate = is_allowed_url,
) -> Iterator[CrawlEvent]:
    """
    Parse a raw crawl request and stream its events.

    A malformed request yields a single ErrorEvent instead of raising.
    """
    try:
        request = CrawlRequest.from_dict(payload)
    except ConfigError as e:
        logger.warning("Rejected crawl request: %s", e)
        yield ErrorEvent(str(e))
        return
    yield from Crawler(request, session=session, gate=gate).events()
