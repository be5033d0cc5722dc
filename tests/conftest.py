"""Shared fixtures: a fake clock and a scripted request executor"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pytest

from pacer.domain.models.response import ResponseDescriptor
from pacer.infrastructure.http_client import HttpRequest

START_TIME = 1_700_000_000.0


class FakeClock:
    """Clock whose sleep() advances time instead of blocking"""

    def __init__(self, start: float = START_TIME):
        self.wall = start
        self.mono = 0.0
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.wall

    def monotonic(self) -> float:
        return self.mono

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.wall += seconds
        self.mono += seconds


class ScriptedExecutor:
    """Returns queued responses in order; the last one repeats forever"""

    def __init__(self, *responses: ResponseDescriptor):
        self.responses = list(responses)
        self.requests: List[HttpRequest] = []

    def perform(self, request: HttpRequest) -> ResponseDescriptor:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    @property
    def calls(self) -> int:
        return len(self.requests)


def make_response(
    status_code: int,
    headers: Optional[Dict[str, str]] = None,
    body: bytes = b"",
    url: str = "https://example.test/repo.git/info/refs",
) -> ResponseDescriptor:
    return ResponseDescriptor.build(status_code, headers=headers, body=body, url=url)


def rate_limited(retry_after: Optional[str] = None, body: bytes = b"Rate limited\n") -> ResponseDescriptor:
    headers = {"Content-Type": "text/plain"}
    if retry_after is not None:
        headers["Retry-After"] = retry_after
    return make_response(429, headers=headers, body=body)


def ok(body: bytes = b"0000\n") -> ResponseDescriptor:
    return make_response(200, headers={"Content-Type": "text/plain"}, body=body)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's PACER_* variables out of the tests"""
    for name in ("PACER_HTTP_MAX_RETRIES", "PACER_HTTP_RETRY_AFTER", "PACER_HTTP_MAX_RETRY_TIME"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """CLI tests reconfigure the root logger; undo that after each test"""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
