"""Cross-cutting ports used by long-running pipeline work."""

from __future__ import annotations

import abc
import time
from datetime import datetime, timezone
from typing import Callable

NowFn = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CancellationToken(abc.ABC):
    """Check whether the current operation has been requested to stop."""

    @abc.abstractmethod
    def is_cancelled(self) -> bool:
        ...

    @abc.abstractmethod
    def wait(self, timeout: float) -> bool:
        """Sleep up to *timeout* seconds; return True if cancelled meanwhile."""
        ...


class NeverCancelledToken(CancellationToken):
    """Token that never cancels; used by CLI scripts and tests."""

    def is_cancelled(self) -> bool:
        return False

    def wait(self, timeout: float) -> bool:
        if timeout > 0:
            time.sleep(timeout)
        return False
