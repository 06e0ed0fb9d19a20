"""
Data structures shared by the crawl components.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Pattern, Tuple

from linkcrawler.config import MAX_URL_FILTER_LENGTH, CrawlRequest
from linkcrawler.urls import hostname_of, matches_paths, split_prefixes

logger = logging.getLogger(__name__)

REDIRECT_SEPARATOR = " → "


class CrawlState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class LinkType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    # Page-level fetch failures, where no link was classified
    UNKNOWN = "unknown"


@dataclass(slots=True)
class FrontierItem:
    """A URL waiting in the frontier."""
    url: str
    depth: int = 0
    source_url: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RedirectStep:
    """One observed hop of a redirect chain."""
    url: str
    status: int


@dataclass(frozen=True, slots=True)
class RedirectInfo:
    """Outcome of resolving a URL through its redirect chain."""
    chain: Tuple[RedirectStep, ...]
    final_url: str
    final_status: int
    error: Optional[str] = None


def format_redirect_chain(chain: Tuple[RedirectStep, ...]) -> str:
    """Render a chain as its statuses, e.g. '301 → 200'."""
    return REDIRECT_SEPARATOR.join(str(step.status) for step in chain)


@dataclass(frozen=True, slots=True)
class LinkInfo:
    """A candidate link discovered on a page."""
    source_url: str
    target_url: str
    anchor_text: str = ""
    rel: Tuple[str, ...] = ()
    is_internal: bool = False


@dataclass(frozen=True, slots=True)
class LinkResult:
    """The resolved status of one discovered link (or of a failed page)."""
    source_url: str
    target_url: str
    status: int
    redirect_chain: str = ""
    type: LinkType = LinkType.INTERNAL
    anchor_text: str = ""
    rel: Tuple[str, ...] = ()
    depth: int = 0
    error: Optional[str] = None
    retry_count: int = 0
    final_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire form used in `result` events."""
        payload: Dict[str, Any] = {
            "sourceUrl": self.source_url,
            "targetUrl": self.target_url,
            "status": self.status,
            "redirectChain": self.redirect_chain,
            "type": self.type.value,
            "anchorText": self.anchor_text,
            "rel": ", ".join(self.rel),
            "depth": self.depth,
            "retryCount": self.retry_count,
        }
        if self.final_url is not None:
            payload["finalUrl"] = self.final_url
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True, slots=True)
class CrawlBudget:
    """Caps enforced by the scheduler."""
    max_urls: int
    max_depth: int
    rate_limit: float

    @property
    def delay_s(self) -> float:
        """Fixed interval inserted before each fetch."""
        return 1.0 / self.rate_limit

    @classmethod
    def from_request(cls, request: CrawlRequest) -> "CrawlBudget":
        return cls(request.max_urls, request.max_depth, request.rate_limit)


def compile_url_filter(pattern: Optional[str]) -> Optional[Pattern[str]]:
    """
    Compile a user supplied URL filter.

    Patterns longer than MAX_URL_FILTER_LENGTH or that fail to compile are
    dropped (None) so the crawl proceeds unfiltered.
    """
    if not pattern:
        return None
    if len(pattern) > MAX_URL_FILTER_LENGTH:
        logger.warning(
            "Ignoring URL filter: %d chars exceeds limit of %d",
            len(pattern), MAX_URL_FILTER_LENGTH,
        )
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("Ignoring invalid URL filter %r: %s", pattern, e)
        return None


@dataclass(frozen=True, slots=True)
class FilterSet:
    """URL filtering rules, fixed for the duration of a crawl."""
    regex: Optional[Pattern[str]] = None
    path_include: Tuple[str, ...] = ()
    path_exclude: Tuple[str, ...] = ()
    same_domain_only: bool = True
    base_domains: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_request(
        cls,
        request: CrawlRequest,
        base_domains: FrozenSet[str] = frozenset(),
    ) -> "FilterSet":
        return cls(
            regex=compile_url_filter(request.url_filter),
            path_include=split_prefixes(request.path_include),
            path_exclude=split_prefixes(request.path_exclude),
            same_domain_only=request.same_domain_only,
            base_domains=base_domains,
        )

    def accepts(self, url: str) -> bool:
        """Apply the regex and path prefix rules to a URL."""
        if self.regex is not None and not self.regex.search(url):
            return False
        return matches_paths(url, self.path_include, self.path_exclude)

    def may_follow(self, url: str) -> bool:
        """Same-domain rule for enqueueing a discovered link."""
        if not self.same_domain_only:
            return True
        return hostname_of(url) in self.base_domains
