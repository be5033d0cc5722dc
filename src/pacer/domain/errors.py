"""Error hierarchy for pacer"""

from typing import Optional

from pacer.domain.models.decision import Fail, FailureKind
from pacer.domain.models.response import ResponseDescriptor


class PacerError(Exception):
    """Base class for all pacer errors."""

    pass


class ConfigurationError(PacerError):
    """Static misconfiguration, detected before any request is made."""

    pass


class RateLimitError(PacerError):
    """A rate-limited request was given up on.

    Attributes:
        decision: The Fail decision that ended the retry loop
        response: Last response received from the server
    """

    kind: FailureKind

    def __init__(self, decision: Fail, response: Optional[ResponseDescriptor] = None):
        super().__init__(decision.message)
        self.decision = decision
        self.response = response

    @property
    def message(self) -> str:
        return self.decision.message


class RetriesDisabledError(RateLimitError):
    kind = FailureKind.RETRIES_DISABLED


class RetriesExhaustedError(RateLimitError):
    kind = FailureKind.RETRIES_EXHAUSTED


class RetryBudgetExceededError(RateLimitError):
    kind = FailureKind.RETRY_BUDGET_EXCEEDED


_ERRORS_BY_KIND = {
    FailureKind.RETRIES_DISABLED: RetriesDisabledError,
    FailureKind.RETRIES_EXHAUSTED: RetriesExhaustedError,
    FailureKind.RETRY_BUDGET_EXCEEDED: RetryBudgetExceededError,
}


def error_for(decision: Fail, response: Optional[ResponseDescriptor] = None) -> RateLimitError:
    """Build the exception matching a Fail decision"""
    return _ERRORS_BY_KIND[decision.kind](decision, response)
