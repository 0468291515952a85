"""Bounded exponential backoff for synchronous calls.

Delays double from ``base_delay`` (1s, 2s, 4s, ...) up to ``max_delay``,
optionally stretched by a server supplied ``retry_after`` and a small
random jitter.  Waiting goes through a cancellation token so shutdown
interrupts a backoff immediately.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, TypeVar

from thumbsup.domain.common.ports import CancellationToken, NeverCancelledToken
from thumbsup.domain.content_analysis.errors import AnalysisCancelled, is_transient_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.0  # fraction of the delay added at random, 0.1 = up to 10%

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    def delay_for(self, retry_index: int, error: BaseException | None = None) -> float:
        """Delay before retry number *retry_index* (0-based)."""
        delay = min(self.base_delay * (2 ** retry_index), self.max_delay)

        retry_after = getattr(error, "retry_after", None)
        if isinstance(retry_after, (int, float)) and 0 < retry_after <= self.max_delay:
            delay = max(delay, float(retry_after))

        if self.jitter > 0:
            delay += delay * self.jitter * random.random()
        return delay

    def call(
        self,
        fn: Callable[[], T],
        *,
        cancel: CancellationToken | None = None,
        is_retryable: Callable[[BaseException], bool] = is_transient_error,
        description: str = "call",
    ) -> T:
        """Run *fn*, retrying retryable failures until attempts run out.

        Raises:
            AnalysisCancelled: If *cancel* fires while backing off.
            Exception: The last error once attempts are exhausted, or the
                first non-retryable one.
        """
        token = cancel or NeverCancelledToken()
        for attempt in range(1, self.attempts + 1):
            if token.is_cancelled():
                raise AnalysisCancelled(f"{description} cancelled before attempt {attempt}")
            try:
                return fn()
            except AnalysisCancelled:
                raise
            except Exception as exc:
                if attempt >= self.attempts or not is_retryable(exc):
                    raise
                delay = self.delay_for(attempt - 1, exc)
                logger.warning(
                    "%s failed (attempt %d/%d): %s. Retrying in %.1fs",
                    description, attempt, self.attempts, exc, delay,
                )
                if token.wait(delay):
                    raise AnalysisCancelled(f"{description} cancelled during backoff") from exc
        raise AssertionError("unreachable")
