"""Domain models for per-client review insights.

Value objects for review history, the cached client summary and
approval predictions.  All dataclasses use frozen=True for immutability.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ReviewStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class PredictionStatus(str, Enum):
    """Why a prediction does or does not carry a probability."""

    READY = "ready"
    INSUFFICIENT_SIGNAL = "insufficient_signal"
    ANALYSIS_PENDING = "analysis_pending"
    ANALYSIS_FAILED = "analysis_failed"
    NOT_FOUND = "not_found"


# ---------------------------------------------------------------------------
# Review history
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReviewCounts:
    approved: int = 0
    rejected: int = 0

    def __post_init__(self) -> None:
        if self.approved < 0 or self.rejected < 0:
            raise ValueError(
                f"review counts must be >= 0, got approved={self.approved} rejected={self.rejected}"
            )

    @property
    def total(self) -> int:
        return self.approved + self.rejected

    @property
    def base_rate(self) -> float | None:
        """Approved / total, or None when there is no history."""
        if self.total == 0:
            return None
        return self.approved / self.total


@dataclass(frozen=True)
class ReviewRecord:
    """One reviewed submission of a client."""

    submission_id: uuid.UUID
    status: ReviewStatus
    comment: str | None = None
    reviewed_at: datetime | None = None

    @property
    def is_approved(self) -> bool:
        return self.status is ReviewStatus.APPROVED


# ---------------------------------------------------------------------------
# Cached summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClientSummary:
    """Rolling description of what a client approves and rejects.

    ``approved_count`` / ``rejected_count`` are the counts observed when
    the summary was built; the cache compares them with current counts
    to decide whether the summary is stale.
    """

    client_id: uuid.UUID
    summary_text: str
    approved_count: int
    rejected_count: int
    updated_at: datetime
    style_preferences: tuple[str, ...] = ()
    recurring_positives: tuple[str, ...] = ()
    rejection_reasons: tuple[str, ...] = ()

    @property
    def total_count(self) -> int:
        return self.approved_count + self.rejected_count

    @property
    def counts(self) -> ReviewCounts:
        return ReviewCounts(approved=self.approved_count, rejected=self.rejected_count)

    @property
    def has_sufficient_history(self) -> bool:
        return self.total_count > 0

    def is_stale_for(self, current: ReviewCounts) -> bool:
        return self.counts != current


# ---------------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApprovalPrediction:
    """Outcome of :class:`ApprovalPredictor.predict`.

    Only ``READY`` predictions carry a probability; every other status
    explains why none could be computed.
    """

    client_id: uuid.UUID
    submission_id: uuid.UUID
    status: PredictionStatus
    rationale: str
    probability: float | None = None
    base_rate: float | None = None
    matched_tags: tuple[str, ...] = ()
    limited_signals: bool = False


def blend_probability(base_rate: float, matched_tags: int, tag_weight: float) -> float:
    """Base rate plus *tag_weight* per matched tag, clamped to [0, 1]."""
    value = base_rate + tag_weight * matched_tags
    return round(min(1.0, max(0.0, value)), 4)


__all__ = [
    "ApprovalPrediction",
    "ClientSummary",
    "PredictionStatus",
    "ReviewCounts",
    "ReviewRecord",
    "ReviewStatus",
    "blend_probability",
]
