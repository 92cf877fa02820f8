"""
Retry policy — bounded retries with exponential backoff and jitter.

Used by the release catalog client for transient transport failures
(network errors, 5xx). Errors that declare ``retryable = False`` (404,
other 4xx) are raised on the first attempt.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """How many times to try, and how long to wait between tries."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based), jitter included."""
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        jitter = random.uniform(0, delay * 0.3)
        return delay + jitter

    def call(
        self,
        fn: Callable[[], T],
        *,
        retry_on: tuple[type[BaseException], ...],
        label: str = "operation",
    ) -> T:
        """Run ``fn`` until it succeeds or attempts run out.

        Args:
            fn: Zero-argument callable.
            retry_on: Exception types that may be retried. An instance with
                a falsy ``retryable`` attribute is re-raised immediately.
            label: Name used in log messages.

        Returns:
            Whatever ``fn`` returns.
        """
        attempt = 1
        while True:
            try:
                return fn()
            except retry_on as exc:
                if not getattr(exc, "retryable", True):
                    raise
                if attempt >= self.max_attempts:
                    logger.warning(
                        "%s failed after %d attempts: %s", label, attempt, exc
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.info(
                    "%s failed (attempt %d/%d): %s — retrying in %.1fs",
                    label,
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                self.sleep(delay)
                attempt += 1
