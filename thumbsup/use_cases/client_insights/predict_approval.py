"""ApprovalPredictor: heuristic approval likelihood for a new submission.

probability = clamp(base_rate + tag_weight * matched_tags, 0, 1)

where ``base_rate`` is approved/total from the client's (freshly
validated) cached summary and ``matched_tags`` counts the target's
flattened theme tags that also occur in the client's approved work.
Without review history no number is produced.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from thumbsup.domain.client_insights.models import (
    ApprovalPrediction,
    ClientSummary,
    PredictionStatus,
    blend_probability,
)
from thumbsup.domain.common.uow import UnitOfWork
from thumbsup.domain.content_analysis.models import AnalysisStatus, ContentFeature
from thumbsup.use_cases.client_insights.client_summary_cache import ClientSummaryCache

logger = logging.getLogger(__name__)

_LIMITED_STATUSES = (AnalysisStatus.NO_IMAGES, AnalysisStatus.NO_SIGNALS)


class ApprovalPredictor:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        summary_cache: ClientSummaryCache,
        *,
        tag_weight: float = 0.05,
    ) -> None:
        self._uow_factory = uow_factory
        self._summaries = summary_cache
        self._tag_weight = tag_weight

    def predict(self, client_id: uuid.UUID, submission_id: uuid.UUID) -> ApprovalPrediction:
        summary = self._summaries.get_or_refresh(client_id)
        if summary is None:
            return self._result(client_id, submission_id, PredictionStatus.NOT_FOUND,
                                f"Client {client_id} was not found.")

        with self._uow_factory() as uow:
            snapshot = uow.submissions.get_snapshot(submission_id)
            if snapshot is None or snapshot.client_id != client_id:
                return self._result(client_id, submission_id, PredictionStatus.NOT_FOUND,
                                    f"Submission {submission_id} was not found for this client.")

            feature = uow.content_features.get(submission_id)
            reviews = uow.reviews.list_for_client(client_id)
            approved_ids = [
                review.submission_id for review in reviews
                if review.is_approved and review.submission_id != submission_id
            ]
            approved_features = uow.content_features.get_many(approved_ids)

        base_rate = summary.counts.base_rate
        if base_rate is None:
            # Zero history takes precedence over the analysis state
            return self._result(
                client_id, submission_id, PredictionStatus.INSUFFICIENT_SIGNAL,
                "- Not enough review history to estimate approval yet: "
                "no submissions from this client have been approved or rejected.",
                limited_signals=feature is not None and feature.status in _LIMITED_STATUSES,
            )

        readiness = self._readiness(client_id, submission_id, feature)
        if readiness is not None:
            return readiness

        target_tags = feature.tags
        approved_tags = {
            tag.casefold()
            for approved in approved_features.values()
            for tag in approved.tags
        }
        matched = tuple(tag for tag in target_tags if tag.casefold() in approved_tags)
        limited = feature.status in _LIMITED_STATUSES

        probability = blend_probability(base_rate, len(matched), self._tag_weight)
        rationale = self._rationale(summary, probability, base_rate, matched, limited)
        logger.debug(
            "Predicted %.2f for submission %s (base=%.2f, matched=%d)",
            probability, submission_id, base_rate, len(matched),
        )
        return ApprovalPrediction(
            client_id=client_id,
            submission_id=submission_id,
            status=PredictionStatus.READY,
            rationale=rationale,
            probability=probability,
            base_rate=base_rate,
            matched_tags=matched,
            limited_signals=limited,
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def _readiness(
        self,
        client_id: uuid.UUID,
        submission_id: uuid.UUID,
        feature: ContentFeature | None,
    ) -> ApprovalPrediction | None:
        if feature is None or feature.status is AnalysisStatus.PENDING:
            return self._result(
                client_id, submission_id, PredictionStatus.ANALYSIS_PENDING,
                "- This submission has not been analyzed yet; try again shortly.",
            )
        if feature.status is AnalysisStatus.FAILED:
            reason = feature.failure_reason or "unknown error"
            return self._result(
                client_id, submission_id, PredictionStatus.ANALYSIS_FAILED,
                f"- Content analysis failed for this submission: {reason}",
            )
        return None

    def _rationale(
        self,
        summary: ClientSummary,
        probability: float,
        base_rate: float,
        matched: tuple[str, ...],
        limited: bool,
    ) -> str:
        bullets = [
            f"- Estimated approval likelihood is {probability:.0%}, starting from a "
            f"{base_rate:.0%} historical approval rate across {summary.total_count} reviews."
        ]
        if matched:
            bullets.append(
                f"- Shares {len(matched)} theme(s) with previously approved work: {', '.join(matched)}."
            )
        elif limited:
            bullets.append("- No usable visual signals were extracted, so only the base rate applies.")
        else:
            bullets.append("- No overlap with themes from previously approved work.")
        if summary.style_preferences:
            bullets.append(f"- The client tends to approve: {', '.join(summary.style_preferences)}.")
        return "\n".join(bullets)

    @staticmethod
    def _result(
        client_id: uuid.UUID,
        submission_id: uuid.UUID,
        status: PredictionStatus,
        rationale: str,
        **fields,
    ) -> ApprovalPrediction:
        return ApprovalPrediction(
            client_id=client_id,
            submission_id=submission_id,
            status=status,
            rationale=rationale,
            **fields,
        )


__all__ = ["ApprovalPredictor"]
