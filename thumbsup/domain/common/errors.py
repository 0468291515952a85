"""Domain error hierarchy shared by every bounded context.

Adapters translate these into transport-specific failures (HTTP status
codes, log lines); the domain itself never imports FastAPI or SQLAlchemy.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain-level failures."""


class ValidationError(DomainError):
    """Input violates a domain rule."""


__all__ = [
    "DomainError",
    "ValidationError",
]
