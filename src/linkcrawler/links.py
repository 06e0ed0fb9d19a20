"""
Link discovery from HTML pages and XML sitemaps.
"""
from __future__ import annotations

from typing import List, Set, Tuple

from bs4 import BeautifulSoup, SoupStrainer

from linkcrawler.config import MAX_ANCHOR_TEXT_LENGTH
from linkcrawler.models import LinkInfo
from linkcrawler.urls import is_internal, normalize_url

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)

SKIPPED_HREF_PREFIXES: Tuple[str, ...] = ("javascript:", "mailto:", "tel:", "#")

SITEMAP_ROOTS: Tuple[str, ...] = ("<urlset", "<sitemapindex")

# How far into the body to look for the start of an XML document
SNIFF_BYTES = 256


def is_sitemap(body: str) -> bool:
    """Check if the body is an XML sitemap (urlset or sitemapindex)."""
    head = body.lstrip()[:SNIFF_BYTES].lower()
    if not head.startswith(("<?xml",) + SITEMAP_ROOTS):
        return False
    # The root may follow a long prolog (comments, stylesheet instructions)
    lowered = body.lower()
    return any(root in lowered for root in SITEMAP_ROOTS)


def _rel_tokens(value) -> Tuple[str, ...]:
    # lxml's HTML builder already splits rel into a list
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split()
    return tuple(token for token in value if token)


def extract_sitemap_links(xml: str, source_url: str) -> List[LinkInfo]:
    """Extract every <loc> target from a sitemap."""
    soup = BeautifulSoup(xml, "xml")
    links: List[LinkInfo] = []
    seen: Set[str] = set()

    for loc in soup.find_all("loc"):
        target = normalize_url(loc.get_text(strip=True))
        if not target or target in seen:
            continue
        seen.add(target)
        links.append(LinkInfo(
            source_url=source_url,
            target_url=target,
            is_internal=is_internal(source_url, target),
        ))

    return links


def extract_html_links(html: str, source_url: str) -> List[LinkInfo]:
    """Extract anchor links in document order, deduplicated per page."""
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    links: List[LinkInfo] = []
    seen: Set[str] = set()

    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
            continue

        target = normalize_url(href, base=source_url)
        if not target or target in seen:
            continue
        seen.add(target)

        links.append(LinkInfo(
            source_url=source_url,
            target_url=target,
            anchor_text=a.get_text().strip()[:MAX_ANCHOR_TEXT_LENGTH],
            rel=_rel_tokens(a.get("rel")),
            is_internal=is_internal(source_url, target),
        ))

    return links


def extract_links(body: str, source_url: str) -> List[LinkInfo]:
    """Extract links from a fetched document, sitemap or HTML."""
    if is_sitemap(body):
        return extract_sitemap_links(body, source_url)
    return extract_html_links(body, source_url)
