"""Optional request throttle for Gemini API usage.

Enforces per-minute and per-day request caps using an in-memory counter. Not
attached by default; the factory wires one in only when caps are configured.
A cap left as None is not enforced. Safe to share across threads.
"""

import asyncio
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Optional


class RateLimitExceeded(RuntimeError):
    """Raised once the daily request cap is used up."""


class RequestRateLimiter:
    """Throttle outbound requests to avoid exceeding provider quotas."""

    def __init__(
        self,
        max_per_minute: Optional[int] = 10,
        max_per_day: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        for limit in (max_per_minute, max_per_day):
            if limit is not None and limit <= 0:
                raise ValueError("Rate limits must be positive integers")
        self.max_per_minute = max_per_minute
        self.max_per_day = max_per_day
        self._clock = clock
        self._lock = threading.Lock()
        self._recent_calls: Deque[float] = deque()
        self._current_day = self._utc_day()
        self._day_count = 0

    def _utc_day(self) -> int:
        return datetime.fromtimestamp(self._clock(), timezone.utc).toordinal()

    def _reset_day_if_needed(self) -> None:
        today = self._utc_day()
        if today != self._current_day:
            self._current_day = today
            self._day_count = 0
            self._recent_calls.clear()

    def try_acquire(self) -> float:
        """Take a slot if one is free.

        Returns 0.0 when the slot was taken, otherwise the number of seconds
        to wait before retrying. Raises RateLimitExceeded when the daily cap
        is reached.
        """
        with self._lock:
            self._reset_day_if_needed()
            now = self._clock()

            while self._recent_calls and now - self._recent_calls[0] >= 60:
                self._recent_calls.popleft()

            if self.max_per_day is not None and self._day_count >= self.max_per_day:
                raise RateLimitExceeded(
                    f"Daily request limit of {self.max_per_day} reached; stop issuing Gemini calls until tomorrow."
                )

            if self.max_per_minute is None or len(self._recent_calls) < self.max_per_minute:
                self._recent_calls.append(now)
                self._day_count += 1
                return 0.0

            return max(0.0, 60 - (now - self._recent_calls[0]))

    def acquire(self, sleep: Optional[Callable[[float], None]] = None) -> None:
        """Block until a request slot is available or raise if daily limit hit."""
        sleep = sleep or time.sleep
        while True:
            wait_time = self.try_acquire()
            if wait_time == 0.0:
                return
            sleep(wait_time)

    async def aacquire(self) -> None:
        while True:
            wait_time = self.try_acquire()
            if wait_time == 0.0:
                return
            await asyncio.sleep(wait_time)

    def remaining_daily(self) -> Optional[int]:
        """Helper for diagnostics: how many calls left today (None when uncapped)."""
        with self._lock:
            self._reset_day_if_needed()
            if self.max_per_day is None:
                return None
            return max(0, self.max_per_day - self._day_count)
