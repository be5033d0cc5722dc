"""Shared HTTP client utilities (requests transport + rate-limit retries).

We keep HTTP logic centralized so that every remote operation goes through
the same retry policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Protocol

import requests

from pacer.domain.models.response import ResponseDescriptor

if TYPE_CHECKING:
    from pacer.domain.config import RetryPolicy
    from pacer.infrastructure.clock import Clock

logger = logging.getLogger(__name__)

USER_AGENT = "pacer/0.1"


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    data: Optional[bytes] = None
    timeout: float = 30.0


class RequestExecutor(Protocol):
    """Performs exactly one HTTP round trip per call"""

    def perform(self, request: HttpRequest) -> ResponseDescriptor:
        ...


class RequestsExecutor:
    """RequestExecutor backed by a requests.Session

    Transport errors (requests.RequestException) are not caught here.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def perform(self, request: HttpRequest) -> ResponseDescriptor:
        logger.debug(f"HTTP {request.method} {request.url}")
        resp = self.session.request(
            request.method,
            request.url,
            headers=request.headers,
            data=request.data,
            timeout=request.timeout,
            allow_redirects=True,
        )
        logger.debug(f"HTTP {resp.status_code} from {request.url}")
        return ResponseDescriptor(
            status_code=resp.status_code,
            headers=resp.headers,
            body=resp.content,
            url=resp.url or request.url,
            reason=resp.reason,
        )

    def close(self) -> None:
        self.session.close()


def get_with_retries(
    url: str,
    *,
    policy: RetryPolicy,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
    executor: Optional[RequestExecutor] = None,
    clock: Optional[Clock] = None,
) -> ResponseDescriptor:
    """GET with retry on 429 according to the retry policy.

    Returns the final response, whatever its status; only rate-limit
    failures raise (RateLimitError subclasses).
    """
    from pacer.infrastructure.retry import RetryDecisionEngine

    engine = RetryDecisionEngine(policy, executor or RequestsExecutor(), clock=clock)
    return engine.execute(HttpRequest("GET", url, headers=dict(headers or {}), timeout=timeout))
