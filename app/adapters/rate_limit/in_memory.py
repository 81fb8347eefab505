"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Records are never evicted; they live as long as the process.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult, RateRecord


def _now_ms() -> float:
    return time.time() * 1000.0


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    A key's window opens on its first request and rolls over on the first
    request arriving more than ``window_ms`` after it opened. Because the
    window is fixed rather than sliding, a client can burst up to twice the
    limit around a rollover.

    Important:
        Rejected requests still increment the counter, so a client that keeps
        hammering during a window stays over the limit until rollover.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_ms: int,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_ms: Size of the fixed window in milliseconds.
            clock: Time source returning milliseconds.

        Raises:
            ValueError: If limit or window_ms are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self._limit = limit
        self._window_ms = window_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._records: dict[str, RateRecord] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def get_record(self, key: str) -> RateRecord | None:
        """Return a snapshot of the record for ``key``, if one exists."""
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            return RateRecord(
                identifier=record.identifier,
                count=record.count,
                window_start=record.window_start,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _get_or_roll_record(self, key: str, now: float) -> RateRecord:
        """Fetch the record for key, creating it or starting a new window."""
        record = self._records.get(key)
        if record is None:
            record = RateRecord(identifier=key, count=0, window_start=now)
            self._records[key] = record
        elif now - record.window_start > self._window_ms:
            record.count = 0
            record.window_start = now
        return record

    def _retry_after(self, record: RateRecord, now: float) -> int:
        elapsed = now - record.window_start
        return max(1, math.ceil((self._window_ms - elapsed) / 1000))

    def consume(self, key: str) -> RateLimitResult:
        """Count one request for the provided key.

        Args:
            key: Unique identifier for rate limiting (e.g., client address).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            record = self._get_or_roll_record(key, now)
            record.count += 1

            if record.count > self._limit:
                return RateLimitResult(
                    allowed=False,
                    limit=self._limit,
                    count=record.count,
                    remaining=0,
                    retry_after_seconds=self._retry_after(record, now),
                )

            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                count=record.count,
                remaining=max(0, self._limit - record.count),
            )
