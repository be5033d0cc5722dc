"""HTTP retry policy model."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """Resolved retry settings for one command invocation.

    Attributes:
        max_retries: Retries allowed after a 429 response (0 = disabled)
        retry_after: Delay in seconds when the server gives no usable Retry-After
        max_retry_time: Longest single wait in seconds (None = unbounded)
    """

    max_retries: int = Field(0, ge=0)
    retry_after: float = Field(1.0, ge=0.0)
    max_retry_time: Optional[float] = Field(None, gt=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def retries_enabled(self) -> bool:
        return self.max_retries > 0

    @property
    def bounded(self) -> bool:
        """Check if single waits are capped by max_retry_time"""
        return self.max_retry_time is not None
