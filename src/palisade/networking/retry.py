"""Retry budget and exponential backoff with jitter."""

from __future__ import annotations

import random

BACKOFF_CEILING_SECONDS = 64.0
JITTER_SECONDS = 1.0


class RetryController:
    """Decides whether a failed transport exchange may be attempted again.

    Only transport failures are retried; an HTTP error status is a completed
    exchange and never reaches this controller.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    @staticmethod
    def should_retry(retries_attempted: int, max_retries: int) -> bool:
        return retries_attempted < max_retries

    def next_delay(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (1-based)."""
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        # Cap the exponent so large attempt numbers cannot overflow a float.
        delay = 2.0 ** min(attempt, 7) + self._rng.uniform(0, JITTER_SECONDS)
        return min(delay, BACKOFF_CEILING_SECONDS)
