"""Tests for URL normalization and path helpers."""
from __future__ import annotations

import pytest

from linkcrawler.urls import (
    hostname_of,
    is_internal,
    matches_paths,
    normalize_url,
    split_prefixes,
)

SAMPLES = [
    "https://example.com",
    "https://example.com/",
    "https://Example.COM/Path/",
    "https://example.com/a//",
    "https://example.com:443/x?b=2&a=1#frag",
    "http://example.com:8080/docs/#top",
    "http://user:pw@example.com/private/",
    "http://[::1]:8000/v6/",
]


class TestNormalizeUrl:

    @pytest.mark.parametrize("url", SAMPLES)
    def test_idempotent(self, url):
        once = normalize_url(url)
        assert once is not None
        assert normalize_url(once) == once

    def test_fragment_and_trailing_slash_collapse(self):
        variants = [
            "https://example.com/docs",
            "https://example.com/docs/",
            "https://example.com/docs#intro",
            "https://example.com/docs/#intro",
        ]
        assert {normalize_url(v) for v in variants} == {"https://example.com/docs"}

    def test_root_keeps_slash(self):
        assert normalize_url("https://example.com") == "https://example.com/"
        assert normalize_url("https://example.com/") == "https://example.com/"

    def test_query_preserved_verbatim(self):
        assert normalize_url("https://example.com/s/?b=2&a=1") == "https://example.com/s?b=2&a=1"
        assert normalize_url("https://example.com/s?a=1&b=2") != normalize_url("https://example.com/s?b=2&a=1")

    def test_scheme_host_case_and_default_port(self):
        assert normalize_url("HTTPS://EXAMPLE.com:443/A") == "https://example.com/A"
        assert normalize_url("http://example.com:80/") == "http://example.com/"
        assert normalize_url("http://example.com:8080/") == "http://example.com:8080/"

    def test_relative_resolution(self):
        base = "https://example.com/docs/page"
        assert normalize_url("other", base) == "https://example.com/docs/other"
        assert normalize_url("/root", base) == "https://example.com/root"
        assert normalize_url("//cdn.example.org/x/", base) == "https://cdn.example.org/x"

    @pytest.mark.parametrize("url", ["", "not a url", "/relative/only", "http://example.com:99999/"])
    def test_invalid_returns_none(self, url):
        assert normalize_url(url) is None


class TestHelpers:

    def test_hostname_of(self):
        assert hostname_of("https://Example.com/x") == "example.com"
        assert hostname_of("nothing") is None

    def test_is_internal(self):
        assert is_internal("https://example.com/a", "http://example.com/b")
        assert not is_internal("https://example.com/a", "https://www.example.com/b")

    def test_split_prefixes(self):
        assert split_prefixes(" /blog, /docs ,, ") == ("/blog", "/docs")
        assert split_prefixes(None) == ()

    def test_matches_paths(self):
        url = "https://example.com/blog/post"
        assert matches_paths(url)
        assert matches_paths(url, include=["/docs", "/blog"])
        assert not matches_paths(url, include=["/docs"])
        assert not matches_paths(url, exclude=["/blog"])
        assert not matches_paths(url, include=["/blog"], exclude=["/blog/post"])
