"""Retry-After header parsing.

The header carries either delta-seconds (``Retry-After: 120``) or an HTTP-date
(``Retry-After: Fri, 31 Dec 1999 23:59:59 GMT``), see RFC 7231 section 7.1.3.
Anything else is treated as "no usable delay" so that the caller can fall
back to its configured default.
"""

from __future__ import annotations

import email.utils
import math
import re
from datetime import datetime, timezone
from typing import Optional

_DELTA_SECONDS = re.compile(r"[0-9]+")


def parse_retry_after(value: Optional[str], now: float) -> Optional[float]:
    """Parse a Retry-After header value into seconds to wait from ``now``.

    Args:
        value: Raw header value (None when the header is absent)
        now: Current wall-clock time as a POSIX timestamp

    Returns:
        Seconds to wait, never negative, or None if the value is absent or unparseable
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    if _DELTA_SECONDS.fullmatch(value):
        try:
            return float(int(value))
        except (OverflowError, ValueError):
            # Too many digits for a float (or for int() itself); still a valid, absurdly long delay
            return math.inf

    timestamp = _parse_http_date(value)
    if timestamp is None:
        return None
    # A date in the past means "retry now"
    return max(0.0, timestamp - now)


def _parse_http_date(value: str) -> Optional[float]:
    """Parse an HTTP-date into a POSIX timestamp, None if it is not one"""
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        # HTTP-dates are always GMT; "-0000" and asctime forms come back naive
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.timestamp()
    except (OverflowError, OSError, ValueError):
        return None


def format_http_date(timestamp: float) -> str:
    """Format a POSIX timestamp as an IMF-fixdate (used for logging and tests)"""
    return email.utils.format_datetime(datetime.fromtimestamp(timestamp, tz=timezone.utc), usegmt=True)
