"""
URL normalization and path helpers.
"""
from __future__ import annotations

from typing import Iterable, Optional, Tuple
from urllib.parse import urljoin, urlparse, urlunparse, urldefrag

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str, base: Optional[str] = None) -> Optional[str]:
    """
    Normalize URL for deduplication and comparison.

    - Joins relative URLs against base
    - Drops fragments (#...)
    - Normalizes scheme/host case
    - Removes default ports (:80, :443)
    - Trims trailing slashes from the path (root stays "/")
    - Keeps querystrings verbatim (they matter for uniqueness)

    Returns None when the result is not an absolute URL.
    """
    if not url:
        return None

    url = url.strip()
    try:
        joined, _ = urldefrag(urljoin(base, url) if base else url)
        parsed = urlparse(joined)
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    hostname = (parsed.hostname or "").lower()
    if not scheme or not hostname:
        return None

    # Normalize hostname and port
    if ":" in hostname:
        hostname = f"[{hostname}]"
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        hostname = f"{hostname}:{port}"

    userinfo = parsed.netloc.rpartition("@")[0] if "@" in parsed.netloc else ""
    netloc = f"{userinfo}@{hostname}" if userinfo else hostname

    path = parsed.path.rstrip("/") or "/"

    return urlunparse((scheme, netloc, path, parsed.params, parsed.query, ""))


def hostname_of(url: str) -> Optional[str]:
    """Return the lowercased hostname of a URL, or None if it has none."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    return hostname.lower() if hostname else None


def is_internal(source_url: str, target_url: str) -> bool:
    """Check if target shares the source's hostname."""
    source_host = hostname_of(source_url)
    return source_host is not None and source_host == hostname_of(target_url)


def split_prefixes(value: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated list of path prefixes, dropping blanks."""
    if not value:
        return ()
    return tuple(p.strip() for p in value.split(",") if p.strip())


def matches_paths(
    url: str,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> bool:
    """
    Check a URL's path against include/exclude prefixes.

    An empty include list accepts every path; any matching exclude prefix
    rejects the URL.
    """
    path = urlparse(url).path or "/"
    include = tuple(include)
    if include and not any(path.startswith(prefix) for prefix in include):
        return False
    return not any(path.startswith(prefix) for prefix in exclude)
