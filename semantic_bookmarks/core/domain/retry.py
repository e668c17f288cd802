"""Retry policy model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff bounds for one logical request.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1).
        base_delay_ms: Delay before the first retry, doubled per attempt.
        max_delay_ms: Cap on the exponential delay, before jitter and rate-limit scaling.
    """

    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 8000

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("delays must be non-negative")
