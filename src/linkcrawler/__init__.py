"""
Link crawler that performs a BFS traversal from seed URLs, resolving every
discovered link through its redirect chain and streaming results as events.
"""
from linkcrawler.config import CrawlRequest, CrawlSettings
from linkcrawler.gate import allow_all, is_allowed_url
from linkcrawler.models import CrawlState, LinkResult, RedirectStep
from linkcrawler.scheduler import Crawler, stream_crawl
from linkcrawler.urls import normalize_url

__version__ = "1.0.0"
__all__ = [
    "Crawler",
    "CrawlRequest",
    "CrawlSettings",
    "CrawlState",
    "LinkResult",
    "RedirectStep",
    "allow_all",
    "is_allowed_url",
    "normalize_url",
    "stream_crawl",
]
