"""Rate-limit retry engine built on tenacity.

The engine performs one logical HTTP request, classifying every response:
anything but 429 is handed back untouched, a 429 is either retried after the
server's Retry-After delay (or the configured default) or turned into a
terminal RateLimitError.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple
from urllib.parse import urlsplit

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt

from pacer.domain.config import RetryPolicy
from pacer.domain.errors import error_for
from pacer.domain.models.decision import Decision, Fail, FailureKind, Retry, RetryState, Success
from pacer.domain.models.response import ResponseDescriptor
from pacer.domain.retry_after import parse_retry_after
from pacer.infrastructure.clock import Clock, SystemClock
from pacer.infrastructure.http_client import HttpRequest, RequestExecutor

logger = logging.getLogger(__name__)

Outcome = Tuple[ResponseDescriptor, Decision]


def format_seconds(seconds: float) -> str:
    """Render a delay for humans: 100 -> "100", 3.04 -> "3.04" """
    return f"{seconds:g}"


def _is_retry(outcome: Outcome) -> bool:
    return isinstance(outcome[1], Retry)


class RetryDecisionEngine:
    """Decides retry vs. failure for 429 responses and drives the retry loop.

    The policy is fixed for the engine's lifetime; each call to execute()
    starts a fresh RetryState.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        executor: RequestExecutor,
        clock: Optional[Clock] = None,
    ):
        """Initialize engine

        Args:
            policy: Resolved retry policy
            executor: Performs one HTTP round trip per attempt
            clock: Time source and sleep (default: SystemClock)
        """
        self.policy = policy
        self.executor = executor
        self.clock = clock or SystemClock()

    def classify(self, response: ResponseDescriptor, state: RetryState) -> Decision:
        """Decide what to do with a response

        Args:
            response: Response of the latest attempt
            state: Retry bookkeeping of the current request

        Returns:
            Success, Retry(delay) or Fail(kind, message)
        """
        if not response.is_rate_limited:
            return Success()

        target = _describe_target(response)
        if not self.policy.retries_enabled:
            return Fail(
                FailureKind.RETRIES_DISABLED,
                f"HTTP 429 Too Many Requests from {target} (retries disabled, http.maxRetries is 0)",
            )

        if state.attempts_made >= self.policy.max_retries:
            return Fail(
                FailureKind.RETRIES_EXHAUSTED,
                f"HTTP 429 Too Many Requests from {target}: "
                f"still rate limited after {state.attempts_made} retries",
            )

        delay = parse_retry_after(response.retry_after, self.clock.now())
        if delay is None:
            if response.retry_after is not None:
                logger.debug(f"Ignoring unparseable Retry-After: {response.retry_after!r}")
            delay = self.policy.retry_after

        if self.policy.bounded and delay > self.policy.max_retry_time:
            return Fail(
                FailureKind.RETRY_BUDGET_EXCEEDED,
                f"Rate limited by {target}: requested delay of {format_seconds(delay)} seconds "
                f"exceeds http.maxRetryTime ({format_seconds(self.policy.max_retry_time)} seconds)",
            )

        return Retry(delay)

    def execute(self, request: HttpRequest) -> ResponseDescriptor:
        """Perform a request, retrying while the server answers 429

        Args:
            request: The logical request, re-sent unchanged on every attempt

        Returns:
            The first response that is not a 429, whatever its status

        Raises:
            RateLimitError: If the engine gives up on a 429 (disabled, exhausted or over budget)
            requests.RequestException: Transport errors, never retried here
        """
        state = RetryState(started_at=self.clock.monotonic())

        def _attempt() -> Outcome:
            response = self.executor.perform(request)
            decision = self.classify(response, state)
            logger.debug(f"HTTP {response.status_code} for {request.url}: {type(decision).__name__}")
            return response, decision

        def _before_sleep(retry_state: RetryCallState) -> None:
            response, decision = retry_state.outcome.result()
            logger.warning(
                f"Rate limited by {_describe_target(response)}: waiting {format_seconds(decision.delay)} "
                f"seconds before retry (attempt {state.attempts_made + 1}/{self.policy.max_retries})"
            )
            state.record_wait(decision.delay)

        retrying = Retrying(
            sleep=self.clock.sleep,
            # classify() fails at max_retries first; this only bounds the loop
            stop=stop_after_attempt(self.policy.max_retries + 1),
            wait=lambda retry_state: retry_state.outcome.result()[1].delay,
            retry=retry_if_result(_is_retry),
            before_sleep=_before_sleep,
        )
        response, decision = retrying(_attempt)

        elapsed = self.clock.monotonic() - state.started_at
        if isinstance(decision, Fail):
            logger.debug(
                f"Giving up on {request.url} ({decision.kind.value}) after {state.attempts_made} retries, "
                f"{format_seconds(elapsed)}s elapsed"
            )
            raise error_for(decision, response)

        if state.attempts_made:
            logger.info(
                f"{request.url} answered HTTP {response.status_code} after {state.attempts_made} retries "
                f"({format_seconds(state.cumulative_wait)}s spent waiting)"
            )
        return response


def _describe_target(response: ResponseDescriptor) -> str:
    if not response.url:
        return "server"
    return urlsplit(response.url).netloc or response.url
