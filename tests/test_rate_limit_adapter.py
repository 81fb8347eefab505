"""Unit tests for in-memory rate limiter adapter."""

import math
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1_000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_ms=60_000, clock=clock)

    results = [limiter.consume("k") for _ in range(5)]

    assert all(r.allowed for r in results)
    assert results[-1].remaining == 0


def test_blocks_request_after_limit() -> None:
    clock = Mock(return_value=1_000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_ms=60_000, clock=clock)

    for _ in range(5):
        limiter.consume("k")

    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.count == 6
    assert blocked.retry_after_seconds == 60


def test_rejected_requests_still_count() -> None:
    clock = Mock(return_value=1_000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000, clock=clock)

    for _ in range(4):
        limiter.consume("k")

    record = limiter.get_record("k")
    assert record is not None
    assert record.count == 4


def test_remaining_decreases_by_one_and_floors_at_zero() -> None:
    clock = Mock(return_value=1_000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=3, window_ms=60_000, clock=clock)

    remaining = [limiter.consume("k").remaining for _ in range(5)]

    assert remaining == [2, 1, 0, 0, 0]


def test_window_resets_after_window_elapsed() -> None:
    clock = Mock(return_value=1_000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_ms=60_000, clock=clock)

    limiter.consume("k")
    limiter.consume("k")
    assert limiter.consume("k").allowed is False

    clock.return_value = 1_000.0 + 60_000 + 1
    result = limiter.consume("k")

    assert result.allowed is True
    assert result.count == 1
    assert limiter.get_record("k").window_start == clock.return_value


def test_window_does_not_reset_at_exact_boundary() -> None:
    clock = Mock(return_value=1_000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000, clock=clock)

    limiter.consume("k")
    clock.return_value = 61_000.0

    blocked = limiter.consume("k")
    assert blocked.allowed is False
    # Zero seconds left in the window still advertises a positive wait.
    assert blocked.retry_after_seconds == 1


def test_window_start_is_first_request_not_aligned() -> None:
    clock = Mock(return_value=59_999.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000, clock=clock)

    limiter.consume("k")
    clock.return_value = 60_001.0

    assert limiter.consume("k").allowed is False


@pytest.mark.parametrize("elapsed_ms", [0, 1, 500, 1_000, 30_250, 59_000, 59_999, 60_000])
def test_retry_after_is_positive_and_bounded(elapsed_ms: int) -> None:
    window_ms = 60_000
    clock = Mock(return_value=0.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=window_ms, clock=clock)

    limiter.consume("k")
    clock.return_value = float(elapsed_ms)
    retry_after = limiter.consume("k").retry_after_seconds

    assert retry_after is not None
    assert 1 <= retry_after <= math.ceil(window_ms / 1000)


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1_000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000, clock=clock)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True
    assert len(limiter) == 2


def test_records_are_created_lazily() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000)

    assert limiter.get_record("k") is None
    assert len(limiter) == 0

    limiter.consume("k")
    assert limiter.get_record("k").identifier == "k"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_ms": 60_000},
        {"limit": 1, "window_ms": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000)

    with pytest.raises(ValueError):
        limiter.consume("")
