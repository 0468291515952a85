"""Content insight API endpoints.

- POST /insights/submissions/{id}/reanalyze: queue a submission for analysis
- GET  /insights/submissions/{id}/features: stored analysis for a submission
- GET  /insights/clients/{id}/summary: cached (or rebuilt) client summary
- GET  /insights/predictions: approval likelihood for a submission
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...domain.client_insights.models import PredictionStatus
from ...domain.content_analysis.summary import describe_submission
from ...infra.db.uow import SqlUnitOfWork
from ...pipeline.analysis_queue import AnalysisQueue
from ...schemas.insights import (
    ApprovalPredictionResponse,
    ClientSummaryResponse,
    ContentFeatureResponse,
    ReanalyzeResponse,
)
from ...use_cases.client_insights.client_summary_cache import ClientSummaryCache
from ...use_cases.client_insights.predict_approval import ApprovalPredictor
from ...wiring.bootstrap import (
    get_analysis_queue,
    get_approval_predictor,
    get_client_summary_cache,
    get_uow,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/submissions/{submission_id}/reanalyze",
    response_model=ReanalyzeResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def reanalyze_submission(
    submission_id: uuid.UUID,
    uow: SqlUnitOfWork = Depends(get_uow),
    queue: AnalysisQueue = Depends(get_analysis_queue),
):
    """Queue a submission for (re)analysis by the background worker."""
    with uow:
        if uow.submissions.get_snapshot(submission_id) is None:
            raise HTTPException(status_code=404, detail=f"Submission {submission_id} not found")
    queued = queue.enqueue(submission_id)
    return ReanalyzeResponse(submission_id=submission_id, queued=queued, queue_depth=len(queue))


@router.get("/submissions/{submission_id}/features", response_model=ContentFeatureResponse)
async def get_submission_features(
    submission_id: uuid.UUID,
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Return the stored content feature and a plain-language summary of it.

    404 until the submission is analyzed.
    """
    with uow:
        snapshot = uow.submissions.get_snapshot(submission_id)
        feature = uow.content_features.get(submission_id)
    if feature is None or snapshot is None:
        raise HTTPException(status_code=404, detail=f"Submission {submission_id} has not been analyzed")
    return ContentFeatureResponse.from_domain(feature, describe_submission(snapshot, feature))


@router.get("/clients/{client_id}/summary", response_model=ClientSummaryResponse)
async def get_client_summary(
    client_id: uuid.UUID,
    cache: ClientSummaryCache = Depends(get_client_summary_cache),
):
    """Return the client's preference summary, rebuilding it if reviews changed."""
    summary = cache.get_or_refresh(client_id)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"Client {client_id} not found")
    return ClientSummaryResponse.from_domain(summary)


@router.get("/predictions", response_model=ApprovalPredictionResponse)
async def predict_approval(
    client_id: uuid.UUID = Query(..., description="Client who will review the submission"),
    submission_id: uuid.UUID = Query(..., description="Submission to score"),
    predictor: ApprovalPredictor = Depends(get_approval_predictor),
):
    """Estimate how likely the client is to approve the submission."""
    prediction = predictor.predict(client_id, submission_id)
    if prediction.status is PredictionStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail=prediction.rationale)
    return ApprovalPredictionResponse.from_domain(prediction)
