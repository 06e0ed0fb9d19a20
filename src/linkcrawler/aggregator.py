"""
Accumulates emitted link results for summaries and persistence.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from linkcrawler.events import CrawlEvent, ResultEvent
from linkcrawler.models import REDIRECT_SEPARATOR, LinkResult, LinkType


@dataclass(slots=True)
class CrawlSummary:
    """Statistics collected during crawl for summary output."""
    total_links: int = 0
    internal: int = 0
    external: int = 0
    failed_pages: int = 0
    redirected: int = 0
    status_counts: Dict[int, int] = field(default_factory=dict)
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


class ResultAggregator:
    """Collects LinkResults in emission order."""

    def __init__(self) -> None:
        self.results: List[LinkResult] = []
        self._summary = CrawlSummary()
        self._statuses: Counter = Counter()

    def __len__(self) -> int:
        return len(self.results)

    def add(self, result: LinkResult) -> None:
        self.results.append(result)
        summary = self._summary
        summary.total_links += 1
        self._statuses[result.status] += 1

        if result.type is LinkType.INTERNAL:
            summary.internal += 1
        elif result.type is LinkType.EXTERNAL:
            summary.external += 1
        else:
            summary.failed_pages += 1

        if REDIRECT_SEPARATOR in result.redirect_chain:
            summary.redirected += 1
        self._record_error(result)

    def _record_error(self, result: LinkResult) -> None:
        """Record an error by status code category."""
        if result.status == 0:
            self._summary.error_counts["connection_error"] += 1
        elif result.status >= 400:
            self._summary.error_counts[str(result.status)] += 1

    def consume(self, events: Iterable[CrawlEvent]) -> Iterable[CrawlEvent]:
        """Pass events through, recording every result along the way."""
        for event in events:
            if isinstance(event, ResultEvent):
                self.add(event.result)
            yield event

    def summary(self) -> CrawlSummary:
        self._summary.status_counts = dict(sorted(self._statuses.items()))
        return self._summary

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.results]
