"""
Crawl request configuration: defaults, clamping and validation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from linkcrawler.errors import ConfigError

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; LinkCrawler/1.0)"

DEFAULT_TIMEOUT_S = 30
MIN_TIMEOUT_S = 1
MAX_TIMEOUT_S = 120

DEFAULT_RETRIES = 1
MAX_RETRIES = 5

DEFAULT_MAX_URLS = 100
DEFAULT_MAX_DEPTH = 1
DEFAULT_RATE_LIMIT = 2.0

MAX_REDIRECTS = 10
REDIRECT_TIMEOUT_S = 10

# Longer patterns are ignored to bound regex backtracking on untrusted input
MAX_URL_FILTER_LENGTH = 200
MAX_ANCHOR_TEXT_LENGTH = 200


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _as_int(payload: Mapping[str, Any], key: str, default: int) -> int:
    value = payload.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer") from None


def _as_float(payload: Mapping[str, Any], key: str, default: float) -> float:
    value = payload.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number") from None


def _as_str(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value


@dataclass(slots=True)
class CrawlSettings:
    """Per-request HTTP settings."""
    timeout: int = DEFAULT_TIMEOUT_S
    retries: int = DEFAULT_RETRIES
    headers: Dict[str, str] = field(default_factory=dict)
    proxy: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        self.timeout = clamp(int(self.timeout), MIN_TIMEOUT_S, MAX_TIMEOUT_S)
        self.retries = clamp(int(self.retries), 0, MAX_RETRIES)

    @property
    def request_headers(self) -> Dict[str, str]:
        """Default User-Agent overlaid with the custom headers."""
        return {"User-Agent": self.user_agent, **self.headers}

    @property
    def proxies(self) -> Optional[Dict[str, str]]:
        if not self.proxy:
            return None
        return {"http": self.proxy, "https": self.proxy}

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "CrawlSettings":
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ConfigError("settings must be an object")

        headers = payload.get("headers") or {}
        if not isinstance(headers, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            raise ConfigError("settings.headers must map strings to strings")

        return cls(
            timeout=_as_int(payload, "timeout", DEFAULT_TIMEOUT_S),
            retries=_as_int(payload, "retries", DEFAULT_RETRIES),
            headers=dict(headers),
            proxy=_as_str(payload, "proxy"),
        )


@dataclass(slots=True)
class CrawlRequest:
    """A validated crawl request."""
    urls: List[str]
    recursive: bool = False
    max_urls: int = DEFAULT_MAX_URLS
    max_depth: int = DEFAULT_MAX_DEPTH
    rate_limit: float = DEFAULT_RATE_LIMIT
    same_domain_only: bool = True
    url_filter: Optional[str] = None
    path_include: Optional[str] = None
    path_exclude: Optional[str] = None
    settings: CrawlSettings = field(default_factory=CrawlSettings)

    def __post_init__(self) -> None:
        if isinstance(self.urls, str) or not isinstance(self.urls, (list, tuple)):
            raise ConfigError("urls array required")
        if not all(isinstance(u, str) for u in self.urls):
            raise ConfigError("urls must contain strings")
        if not self.rate_limit > 0:
            raise ConfigError(f"rateLimit must be positive, got {self.rate_limit}")
        self.urls = list(self.urls)
        self.max_urls = max(0, int(self.max_urls))
        self.max_depth = max(0, int(self.max_depth))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlRequest":
        """Build a request from its wire form (camelCase keys)."""
        if not isinstance(payload, Mapping):
            raise ConfigError("request body must be an object")
        return cls(
            urls=payload.get("urls"),
            recursive=bool(payload.get("recursive", False)),
            max_urls=_as_int(payload, "maxUrls", DEFAULT_MAX_URLS),
            max_depth=_as_int(payload, "maxDepth", DEFAULT_MAX_DEPTH),
            rate_limit=_as_float(payload, "rateLimit", DEFAULT_RATE_LIMIT),
            same_domain_only=bool(payload.get("sameDomainOnly", True)),
            url_filter=_as_str(payload, "urlFilter"),
            path_include=_as_str(payload, "pathInclude"),
            path_exclude=_as_str(payload, "pathExclude"),
            settings=CrawlSettings.from_dict(payload.get("settings")),
        )
