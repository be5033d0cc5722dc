"""Time source and blocking sleep used by the retry engine"""

from __future__ import annotations

import threading
import time
from typing import Protocol

# Longest single time.sleep() call every platform accepts (about 68 years)
MAX_SLEEP = min(threading.TIMEOUT_MAX, float(2**31 - 1))


class Clock(Protocol):
    """Wall clock, monotonic clock and sleep, injected so tests can fake time"""

    def now(self) -> float:
        """Current wall-clock time as a POSIX timestamp (for HTTP-dates)"""
        ...

    def monotonic(self) -> float:
        """Monotonic seconds (for measuring elapsed time)"""
        ...

    def sleep(self, seconds: float) -> None:
        """Block the calling thread for `seconds`"""
        ...


class SystemClock:
    """Clock backed by the time module"""

    def now(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            # time.sleep() overflows on huge (or infinite) delays
            time.sleep(min(seconds, MAX_SLEEP))
