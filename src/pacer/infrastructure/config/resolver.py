"""Resolve the HTTP retry policy from environment, config file and defaults"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError

from pacer.domain.config import RetryPolicy
from pacer.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 0
DEFAULT_RETRY_AFTER = 1.0


@dataclass(frozen=True)
class Setting:
    """One resolvable setting: config key, environment override and field name"""

    key: str
    env: str
    field: str


MAX_RETRIES = Setting("http.maxRetries", "PACER_HTTP_MAX_RETRIES", "max_retries")
RETRY_AFTER = Setting("http.retryAfter", "PACER_HTTP_RETRY_AFTER", "retry_after")
MAX_RETRY_TIME = Setting("http.maxRetryTime", "PACER_HTTP_MAX_RETRY_TIME", "max_retry_time")

SETTINGS = (MAX_RETRIES, RETRY_AFTER, MAX_RETRY_TIME)


class ConfigResolver:
    """Merges retry settings with precedence: environment > config key > default.

    The resolver is pure with respect to its inputs: pass any mapping as the
    environment and any mapping of dotted keys as the config source.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        source: Optional[Mapping[str, Any]] = None,
    ):
        """Initialize resolver

        Args:
            environ: Environment variables (default: os.environ)
            source: Persisted configuration as dotted keys, e.g. {"http.maxRetries": 3}
        """
        self.environ = os.environ if environ is None else environ
        # Config keys are case-insensitive
        self.source = {str(k).lower(): v for k, v in (source or {}).items()}

    def resolve(self) -> RetryPolicy:
        """Build and validate the retry policy

        Returns:
            Immutable RetryPolicy

        Raises:
            ConfigurationError: If a value is malformed or http.retryAfter exceeds http.maxRetryTime
        """
        max_retries = self._lookup(MAX_RETRIES)
        retry_after = self._lookup(RETRY_AFTER)
        max_retry_time = self._lookup(MAX_RETRY_TIME)

        values = {
            "max_retries": DEFAULT_MAX_RETRIES if max_retries is None else _as_count(*max_retries),
            "retry_after": DEFAULT_RETRY_AFTER if retry_after is None else _as_seconds(*retry_after),
            "max_retry_time": None,
        }
        if max_retry_time is not None:
            seconds = _as_seconds(*max_retry_time)
            # 0 keeps the budget unbounded
            values["max_retry_time"] = seconds or None

        try:
            policy = RetryPolicy(**values)
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError("Retry configuration validation failed:\n" + "\n".join(errors)) from e

        validate_policy(policy)
        logger.debug(
            f"Resolved retry policy: maxRetries={policy.max_retries}, "
            f"retryAfter={policy.retry_after:g}s, maxRetryTime={_describe_budget(policy)}"
        )
        return policy

    def _lookup(self, setting: Setting) -> Optional[Tuple[str, Any]]:
        """Find the winning raw value for a setting

        Returns:
            (origin, raw value) or None when neither env nor config sets it
        """
        env_value = self.environ.get(setting.env)
        if env_value is not None and str(env_value).strip() != "":
            return setting.env, env_value
        config_value = self.source.get(setting.key.lower())
        if config_value is not None:
            return setting.key, config_value
        return None


def validate_policy(policy: RetryPolicy) -> None:
    """Check cross-field consistency of a policy

    Raises:
        ConfigurationError: If the default delay can never fit in the retry budget
    """
    if policy.bounded and policy.retry_after > policy.max_retry_time:
        raise ConfigurationError(
            f"Configured http.retryAfter ({_seconds(policy.retry_after)} seconds) "
            f"exceeds http.maxRetryTime ({_seconds(policy.max_retry_time)} seconds)"
        )


def resolve_policy(
    environ: Optional[Mapping[str, str]] = None,
    source: Optional[Mapping[str, Any]] = None,
) -> RetryPolicy:
    """Shortcut for ConfigResolver(environ, source).resolve()"""
    return ConfigResolver(environ, source).resolve()


def _as_count(origin: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ConfigurationError(f"Invalid value for {origin}: {raw!r} (expected a non-negative integer)")
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {origin}: {raw!r} (expected a non-negative integer)"
            ) from e
    if value < 0:
        raise ConfigurationError(f"Invalid value for {origin}: {raw!r} (must not be negative)")
    return value


def _as_seconds(origin: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise ConfigurationError(f"Invalid value for {origin}: {raw!r} (expected seconds)")
    try:
        value = float(raw if isinstance(raw, (int, float)) else str(raw).strip())
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {origin}: {raw!r} (expected seconds)") from e
    if not math.isfinite(value):
        raise ConfigurationError(f"Invalid value for {origin}: {raw!r} (expected seconds)")
    if value < 0:
        raise ConfigurationError(f"Invalid value for {origin}: {raw!r} (must not be negative)")
    return value


def _seconds(value: float) -> str:
    return f"{value:g}"


def _describe_budget(policy: RetryPolicy) -> str:
    return f"{policy.max_retry_time:g}s" if policy.bounded else "unbounded"
