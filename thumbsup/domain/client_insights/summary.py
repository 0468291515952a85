"""Deterministic aggregation of review history into a ClientSummary.

Reviewed submissions contribute their flattened theme tags, weighted by
how often each tag occurs, together with the review outcome and the
reviewer's comment.  Approved work describes style preferences and
recurring positives; rejected work describes rejection reasons.
"""

from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from thumbsup.domain.content_analysis.models import ContentFeature

from .models import ClientSummary, ReviewCounts, ReviewRecord

INSUFFICIENT_HISTORY_TEXT = (
    "Insufficient review history: none of this client's submissions "
    "have been approved or rejected yet."
)


@dataclass(frozen=True)
class SummaryLimits:
    top_tags: int = 15
    highlight_limit: int = 5
    recent_comments: int = 10


class TagTally:
    """Case-insensitive tag frequency that remembers first-seen casing."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self._display: dict[str, str] = {}

    def add(self, tags: Sequence[str]) -> None:
        for tag in tags:
            key = tag.casefold()
            self._display.setdefault(key, tag)
            self._counts[key] += 1

    def __contains__(self, tag: str) -> bool:
        return tag.casefold() in self._counts

    def most_common(self, limit: int, *, min_count: int = 1) -> list[tuple[str, int]]:
        ranked = sorted(self._counts.items(), key=lambda item: (-item[1], item[0]))
        return [
            (self._display[key], count)
            for key, count in ranked
            if count >= min_count
        ][:limit]


def _distinct_comments(reviews: Sequence[ReviewRecord], limit: int) -> list[str]:
    seen: set[str] = set()
    comments: list[str] = []
    for review in reviews:
        comment = (review.comment or "").strip()
        if not comment or comment.casefold() in seen:
            continue
        seen.add(comment.casefold())
        comments.append(comment)
        if len(comments) >= limit:
            break
    return comments


def _format_tags(ranked: list[tuple[str, int]]) -> str:
    return ", ".join(f"{tag} ({count})" for tag, count in ranked)


def build_client_summary(
    client_id: uuid.UUID,
    counts: ReviewCounts,
    reviews: Sequence[ReviewRecord],
    features: Mapping[uuid.UUID, ContentFeature],
    now: datetime,
    limits: SummaryLimits = SummaryLimits(),
) -> ClientSummary:
    """Aggregate *reviews* and their *features* into a fresh summary.

    *counts* are persisted verbatim so later staleness checks compare
    against exactly what this rebuild observed.
    """
    if counts.total == 0:
        return ClientSummary(
            client_id=client_id,
            summary_text=INSUFFICIENT_HISTORY_TEXT,
            approved_count=0,
            rejected_count=0,
            updated_at=now,
        )

    approved = [review for review in reviews if review.is_approved]
    rejected = [review for review in reviews if not review.is_approved]

    approved_tags = TagTally()
    rejected_tags = TagTally()
    for review in reviews:
        feature = features.get(review.submission_id)
        if feature is None:
            continue
        (approved_tags if review.is_approved else rejected_tags).add(feature.tags)

    top_approved = approved_tags.most_common(limits.top_tags)
    style_preferences = tuple(tag for tag, _ in top_approved[: limits.highlight_limit])

    window = max(limits.recent_comments, 0)
    recent = list(reviews)[:window]
    positives = _distinct_comments(
        [review for review in recent if review.is_approved], limits.highlight_limit
    )
    if not positives:
        positives = [
            f"{tag} appears in {count} approved submissions"
            for tag, count in approved_tags.most_common(limits.highlight_limit, min_count=2)
        ]

    reasons = _distinct_comments(
        [review for review in recent if not review.is_approved], limits.highlight_limit
    )
    for tag, _ in rejected_tags.most_common(limits.top_tags):
        if len(reasons) >= limits.highlight_limit:
            break
        if tag not in approved_tags:
            reasons.append(f"{tag} only appears in rejected work")

    lines = [
        f"Based on {counts.total} reviewed submissions "
        f"({counts.approved} approved, {counts.rejected} rejected; "
        f"{counts.base_rate:.0%} approval rate)."
    ]
    if top_approved:
        lines.append(f"Frequent themes in approved work: {_format_tags(top_approved)}.")
    elif approved:
        lines.append("Approved work has no analyzed themes yet.")
    else:
        lines.append("No approved work yet.")
    if positives:
        lines.append(f"Recurring positives: {'; '.join(positives)}.")
    if reasons:
        lines.append(f"Rejection reasons: {'; '.join(reasons)}.")
    elif rejected:
        lines.append("Rejected work has no recorded reasons.")

    return ClientSummary(
        client_id=client_id,
        summary_text="\n".join(lines),
        approved_count=counts.approved,
        rejected_count=counts.rejected,
        updated_at=now,
        style_preferences=style_preferences,
        recurring_positives=tuple(positives),
        rejection_reasons=tuple(reasons),
    )


__all__ = ["INSUFFICIENT_HISTORY_TEXT", "SummaryLimits", "TagTally", "build_client_summary"]
