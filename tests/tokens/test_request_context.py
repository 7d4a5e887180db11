"""Tests for request context extraction."""

from __future__ import annotations

from types import SimpleNamespace

from approvals.tokens.request_context import (
    UNKNOWN,
    client_ip,
    extract_request_context,
    user_agent,
)


def _request(headers: dict[str, str] | None = None, host: str | None = None) -> SimpleNamespace:
    client = SimpleNamespace(host=host) if host is not None else None
    return SimpleNamespace(headers=headers or {}, client=client)


class TestClientIp:
    def test_prefers_first_forwarded_for_entry(self) -> None:
        req = _request({"x-forwarded-for": "198.51.100.1, 10.0.0.2"}, host="10.0.0.3")
        assert client_ip(req) == "198.51.100.1"

    def test_falls_back_to_peer_address(self) -> None:
        assert client_ip(_request(host="10.0.0.3")) == "10.0.0.3"

    def test_empty_forwarded_for_falls_back(self) -> None:
        assert client_ip(_request({"x-forwarded-for": " , "}, host="10.0.0.3")) == "10.0.0.3"

    def test_unknown_without_any_source(self) -> None:
        assert client_ip(_request()) == UNKNOWN


class TestUserAgent:
    def test_returns_header(self) -> None:
        assert user_agent(_request({"user-agent": "Mozilla/5.0"})) == "Mozilla/5.0"

    def test_missing_header_is_unknown(self) -> None:
        assert user_agent(_request()) == UNKNOWN

    def test_blank_header_is_unknown(self) -> None:
        assert user_agent(_request({"user-agent": "   "})) == UNKNOWN


def test_extract_request_context() -> None:
    req = _request({"user-agent": "curl/8.0", "x-forwarded-for": "192.0.2.10"})
    meta = extract_request_context(req)
    assert meta.ip == "192.0.2.10"
    assert meta.user_agent == "curl/8.0"
