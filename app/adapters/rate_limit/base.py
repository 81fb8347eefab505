"""Rate limiter interfaces.

The edge middleware depends on this abstraction (not the concrete
implementation) so storage backends can be swapped with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RateRecord:
    """Per-client counter for the current fixed window.

    Attributes:
        identifier: Client key (usually a network address).
        count: Requests observed in the current window, rejected ones included.
        window_start: Start of the current window, in milliseconds.
    """

    identifier: str
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        count: Requests counted in the current window, this one included.
        remaining: Remaining requests in the current window (0 when blocked).
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    count: int
    remaining: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it is admitted.

        Args:
            key: Unique client identifier (e.g., IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
