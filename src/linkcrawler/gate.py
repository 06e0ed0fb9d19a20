"""
Outbound gate: decides whether a URL may be fetched at all.

Blocks non-HTTP schemes and addresses that point back into the host's own
network (loopback, RFC1918, link-local/cloud metadata, unspecified). The
check is a pure function of the URL string; hostnames are not resolved.
"""
from __future__ import annotations

import ipaddress
from typing import Callable, Iterable, List
from urllib.parse import urlparse

OutboundGate = Callable[[str], bool]

ALLOWED_SCHEMES = frozenset(("http", "https"))
BLOCKED_HOSTNAMES = frozenset(("localhost", "localhost.localdomain"))


def _is_blocked_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_unspecified
    )


def is_allowed_url(url: str) -> bool:
    """Check a URL against the outbound denylist."""
    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower()
    except ValueError:
        return False

    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not hostname:
        return False

    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".localhost"):
        return False

    return not _is_blocked_ip(hostname)


def allow_all(url: str) -> bool:
    """No-op gate for trusted environments."""
    return True


def filter_allowed_urls(urls: Iterable[str], gate: OutboundGate = is_allowed_url) -> List[str]:
    """Keep only the URLs the gate accepts."""
    return [u for u in urls if gate(u)]
