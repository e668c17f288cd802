"""Exponential backoff with jitter for API retries."""

import random

from ..domain import RetryPolicy

JITTER_RATIO = 0.25
RATE_LIMIT_MULTIPLIER = 3


def exponential_delay(attempt: int, policy: RetryPolicy) -> float:
    """Capped exponential delay in milliseconds, without jitter."""
    if attempt < 0:
        raise ValueError("attempt must be non-negative")
    return float(min(policy.base_delay_ms * (2**attempt), policy.max_delay_ms))


def calculate_backoff_delay(
    attempt: int,
    policy: RetryPolicy,
    rate_limited: bool = False,
    rng: random.Random | None = None,
) -> float:
    """Compute how long to wait before the next attempt.

    ``min(base * 2**attempt, max)`` plus up to 25% uniform jitter, tripled
    when the server answered 429.

    Args:
        attempt: Zero-based index of the attempt that just failed.
        policy: Retry policy supplying base and max delays.
        rate_limited: Whether the failure was an HTTP 429.
        rng: Random source; pass a seeded ``random.Random`` for reproducible delays.

    Returns:
        Delay in milliseconds.
    """
    base = exponential_delay(attempt, policy)
    source = rng or random
    delay = base + source.uniform(0.0, JITTER_RATIO * base)
    if rate_limited:
        delay *= RATE_LIMIT_MULTIPLIER
    return delay
