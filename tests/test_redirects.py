"""Tests for redirect chain resolution."""
from __future__ import annotations

import requests
from urllib3.exceptions import LocationParseError

from linkcrawler.models import RedirectStep, format_redirect_chain
from linkcrawler.redirects import TOO_MANY_REDIRECTS, RedirectResolver


class TestRedirectResolver:

    def test_plain_200(self, session):
        info = RedirectResolver(session).resolve("https://example.com/")
        assert info.chain == (RedirectStep("https://example.com/", 200),)
        assert info.final_status == 200
        assert info.final_url == "https://example.com/"
        assert info.error is None
        _, _, kwargs = session.calls[0]
        assert kwargs["allow_redirects"] is False

    def test_follows_chain(self, session):
        session.add_head("http://example.com/old", 301, "https://example.com/old")
        session.add_head("https://example.com/old", 302, "/new")
        session.add_head("https://example.com/new", 200)

        info = RedirectResolver(session).resolve("http://example.com/old")

        assert [s.status for s in info.chain] == [301, 302, 200]
        assert info.final_url == "https://example.com/new"
        assert info.final_status == 200
        assert format_redirect_chain(info.chain) == "301 → 302 → 200"

    def test_redirect_without_location_is_terminal(self, session):
        session.add_head("https://example.com/304", 304)
        info = RedirectResolver(session).resolve("https://example.com/304")
        assert info.final_status == 304
        assert len(info.chain) == 1

    def test_client_error_recorded(self, session):
        session.add_head("https://example.com/gone", 410)
        info = RedirectResolver(session).resolve("https://example.com/gone")
        assert info.final_status == 410
        assert info.error is None

    def test_too_many_redirects(self, session):
        for i in range(11):
            session.add_head(f"https://example.com/r{i}", 301, f"/r{i + 1}")
        session.add_head("https://example.com/r11", 200)

        info = RedirectResolver(session).resolve("https://example.com/r0")

        assert info.final_status == 0
        assert info.error == TOO_MANY_REDIRECTS
        assert len(info.chain) == 10
        assert info.chain[-1] == RedirectStep("https://example.com/r9", 301)

    def test_nine_redirects_resolve(self, session):
        for i in range(9):
            session.add_head(f"https://example.com/r{i}", 301, f"/r{i + 1}")
        info = RedirectResolver(session).resolve("https://example.com/r0")
        assert info.final_status == 200
        assert info.error is None
        assert len(info.chain) == 10

    def test_ten_redirects_exceed_cap(self, session):
        for i in range(10):
            session.add_head(f"https://example.com/r{i}", 301, f"/r{i + 1}")
        info = RedirectResolver(session).resolve("https://example.com/r0")
        assert info.final_status == 0
        assert info.error == TOO_MANY_REDIRECTS
        assert len(info.chain) == 10
        assert "https://example.com/r10" not in session.urls("HEAD")

    def test_unparseable_host_recorded(self, session):
        bad = "http://" + "b" * 64 + ".com/"
        session.add_head_error(bad, LocationParseError("label empty or too long"))
        info = RedirectResolver(session).resolve(bad)
        assert info.final_status == 0
        assert "label empty or too long" in info.error
        assert info.chain == ()

    def test_unparseable_redirect_target(self, session):
        bad = "http://" + "b" * 64 + ".com/"
        session.add_head("https://example.com/go", 302, bad)
        session.add_head_error(bad, LocationParseError("label empty or too long"))
        info = RedirectResolver(session).resolve("https://example.com/go")
        assert info.final_status == 0
        assert info.chain == (RedirectStep("https://example.com/go", 302),)
        assert info.final_url == bad

    def test_timeout_mid_chain(self, session):
        session.add_head("https://example.com/a", 302, "https://slow.example.com/")
        session.add_head_error("https://slow.example.com/", requests.Timeout())

        info = RedirectResolver(session).resolve("https://example.com/a")

        assert info.final_status == 0
        assert info.error == "Timeout"
        assert info.chain == (RedirectStep("https://example.com/a", 302),)
        assert info.final_url == "https://slow.example.com/"

    def test_connection_error_message(self, session):
        session.add_head_error("https://down.example.com/", requests.ConnectionError("Name or service not known"))
        info = RedirectResolver(session).resolve("https://down.example.com/")
        assert info.final_status == 0
        assert info.error == "Name or service not known"
        assert info.chain == ()
