"""Errors raised while analyzing submission content."""

from __future__ import annotations

from concurrent.futures import TimeoutError as FuturesTimeoutError

from thumbsup.domain.common.errors import DomainError


class CapabilityError(DomainError):
    """An OCR or theme-extraction capability call failed."""


class TransientCapabilityError(CapabilityError):
    """Failure worth retrying: timeouts, dropped connections, rate limits."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class CapabilityTimeoutError(TransientCapabilityError):
    """A capability call exceeded its time budget and was abandoned."""


class CapabilityNotConfiguredError(CapabilityError):
    """No implementation has been registered for a capability."""


class AnalysisCancelled(DomainError):
    """Analysis stopped because shutdown was requested."""


_TERMINAL_MARKERS = (
    "invalid api key",
    "authentication",
    "unauthorized",
    "forbidden",
    "403",
    "quota exceeded",
    "billing",
    "context length",
    "request too large",
    "413",
)

_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "rate limit",
    "too many requests",
    "429",
    "502",
    "503",
    "504",
    "temporarily unavailable",
    "connection reset",
    "connection refused",
    "database is locked",
)


def is_transient_error(error: BaseException) -> bool:
    """Classify *error* as retryable (True) or terminal (False)."""
    if isinstance(error, (AnalysisCancelled, CapabilityNotConfiguredError)):
        return False
    if isinstance(error, (TransientCapabilityError, TimeoutError, ConnectionError, FuturesTimeoutError)):
        return True

    error_text = str(error).lower()
    if any(marker in error_text for marker in _TERMINAL_MARKERS):
        return False
    return any(marker in error_text for marker in _TRANSIENT_MARKERS)


def failure_reason(error: BaseException, max_length: int = 4000) -> str:
    """Human-readable failure reason, bounded for storage."""
    message = str(error).strip() or error.__class__.__name__
    return f"{error.__class__.__name__}: {message}"[:max_length]


__all__ = [
    "AnalysisCancelled",
    "CapabilityError",
    "CapabilityNotConfiguredError",
    "CapabilityTimeoutError",
    "TransientCapabilityError",
    "failure_reason",
    "is_transient_error",
]
