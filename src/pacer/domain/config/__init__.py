"""Configuration models with Pydantic validation."""

from pacer.domain.config.http import RetryPolicy

__all__ = [
    "RetryPolicy",
]
