"""Retry decisions and the per-request retry state"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class FailureKind(str, Enum):
    """Why the engine gave up on a rate-limited request"""

    RETRIES_DISABLED = "retries_disabled"
    RETRIES_EXHAUSTED = "retries_exhausted"
    RETRY_BUDGET_EXCEEDED = "retry_budget_exceeded"


@dataclass(frozen=True)
class Success:
    """The response is final and is handed back to the caller as-is"""


@dataclass(frozen=True)
class Retry:
    """Wait `delay` seconds, then perform the same request again"""

    delay: float

    def __post_init__(self):
        if self.delay < 0:
            raise ValueError("Retry delay must be >= 0")


@dataclass(frozen=True)
class Fail:
    """Terminal failure of a rate-limited request"""

    kind: FailureKind
    message: str


Decision = Union[Success, Retry, Fail]


@dataclass
class RetryState:
    """Attempt bookkeeping for one logical request"""

    attempts_made: int = 0  # Retries performed so far (first request not counted)
    cumulative_wait: float = 0.0  # Seconds spent waiting across all retries
    started_at: float = 0.0  # Monotonic timestamp of the first attempt

    def record_wait(self, delay: float) -> None:
        self.attempts_made += 1
        self.cumulative_wait += delay
