from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from pacer.infrastructure.http_client import USER_AGENT, HttpRequest, RequestsExecutor


def _make_response(status_code: int, headers: dict | None = None, content: bytes = b"") -> requests.Response:
    r = requests.Response()
    r.status_code = status_code
    r.url = "http://example.test/repo.git/info/refs"
    r.reason = "Too Many Requests" if status_code == 429 else "OK"
    r._content = content  # type: ignore[attr-defined]
    for name, value in (headers or {}).items():
        r.headers[name] = value
    return r


def test_perform_maps_response():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    session.request.return_value = _make_response(429, {"Retry-After": "5", "Content-Type": "text/plain"}, b"slow down")

    descriptor = RequestsExecutor(session).perform(HttpRequest("GET", "http://example.test/repo.git/info/refs", timeout=3))

    assert descriptor.status_code == 429
    assert descriptor.headers["retry-after"] == "5"
    assert descriptor.retry_after == "5"
    assert descriptor.body == b"slow down"
    assert descriptor.reason == "Too Many Requests"
    assert descriptor.is_rate_limited
    session.request.assert_called_once_with(
        "GET",
        "http://example.test/repo.git/info/refs",
        headers={},
        data=None,
        timeout=3,
        allow_redirects=True,
    )


def test_user_agent_set():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    RequestsExecutor(session)
    assert session.headers["User-Agent"] == USER_AGENT


def test_transport_errors_propagate():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    session.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(requests.ConnectionError):
        RequestsExecutor(session).perform(HttpRequest("GET", "http://example.test"))


def test_content_type_helpers():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    session.request.return_value = _make_response(500, {"Content-Type": 'Text/Plain; charset="UTF-16"'})

    descriptor = RequestsExecutor(session).perform(HttpRequest("GET", "http://example.test"))

    assert descriptor.content_type == "text/plain"
    assert descriptor.charset == "utf-16"
    assert not descriptor.ok
