"""Dependency injection bootstrap: the single place that binds ports to adapters.

Every ``get_*`` factory here can be used as a FastAPI ``Depends()``
target.  Routers never import concrete implementations directly; they
depend on the objects returned by these factories.

Example usage in a router::

    from thumbsup.wiring.bootstrap import get_approval_predictor

    @router.get("/predictions")
    async def predict(
        client_id: uuid.UUID,
        submission_id: uuid.UUID,
        predictor: ApprovalPredictor = Depends(get_approval_predictor),
    ):
        return predictor.predict(client_id, submission_id)

The analysis queue, extractor and pipeline runtime are process-wide
singletons: every producer must enqueue into the same queue the worker
consumes.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterator

from thumbsup.config import settings
from thumbsup.database import SessionLocal
from thumbsup.domain.billing.ports import BillingEventApplier
from thumbsup.domain.client_insights.summary import SummaryLimits
from thumbsup.domain.content_analysis.ports import OcrCapability, ThemeExtractionCapability
from thumbsup.infra.capabilities.unconfigured import (
    UnconfiguredOcrCapability,
    UnconfiguredThemeExtractionCapability,
)
from thumbsup.infra.db.uow import SqlUnitOfWork
from thumbsup.pipeline.analysis_queue import AnalysisQueue
from thumbsup.pipeline.analysis_worker import AnalysisWorker
from thumbsup.pipeline.backfill_scanner import BackfillScanner
from thumbsup.pipeline.runtime import PipelineRuntime
from thumbsup.use_cases.billing.webhook_ledger import LoggingBillingEventApplier, WebhookEventLedger
from thumbsup.use_cases.client_insights.client_summary_cache import ClientSummaryCache
from thumbsup.use_cases.client_insights.predict_approval import ApprovalPredictor
from thumbsup.use_cases.content_analysis.analyze_submission import ContentFeatureExtractor
from thumbsup.utils.retry import RetryPolicy


# ── Unit of Work ─────────────────────────────────────────────────────────


def uow_factory() -> SqlUnitOfWork:
    """Build a SqlUnitOfWork bound to SessionLocal; one per transaction."""
    return SqlUnitOfWork(SessionLocal)


def get_uow() -> Iterator[SqlUnitOfWork]:
    """Yield a SqlUnitOfWork bound to SessionLocal.

    Designed for FastAPI Depends()::

        uow: SqlUnitOfWork = Depends(get_uow)
    """
    yield uow_factory()


# ── Capabilities ─────────────────────────────────────────────────────────

_ocr_capability: OcrCapability | None = None
_theme_capability: ThemeExtractionCapability | None = None


def register_capabilities(
    ocr: OcrCapability | None = None,
    themes: ThemeExtractionCapability | None = None,
) -> None:
    """Install model-backed capabilities; call before the pipeline starts."""
    global _ocr_capability, _theme_capability, _extractor, _pipeline_runtime
    if _pipeline_runtime is not None and _pipeline_runtime.is_running:
        raise RuntimeError("Register capabilities before starting the pipeline runtime")
    if ocr is not None:
        _ocr_capability = ocr
    if themes is not None:
        _theme_capability = themes
    _extractor = None
    _pipeline_runtime = None


def get_ocr_capability() -> OcrCapability:
    global _ocr_capability
    if _ocr_capability is None:
        _ocr_capability = UnconfiguredOcrCapability()
    return _ocr_capability


def get_theme_capability() -> ThemeExtractionCapability:
    global _theme_capability
    if _theme_capability is None:
        _theme_capability = UnconfiguredThemeExtractionCapability()
    return _theme_capability


# ── Content analysis pipeline ────────────────────────────────────────────

_analysis_queue: AnalysisQueue | None = None
_extractor: ContentFeatureExtractor | None = None
_pipeline_runtime: PipelineRuntime | None = None


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        attempts=settings.analysis_retry_attempts,
        base_delay=settings.analysis_retry_base_delay_seconds,
        max_delay=settings.analysis_retry_max_delay_seconds,
    )


def get_analysis_queue() -> AnalysisQueue:
    """Return the process-wide AnalysisQueue."""
    global _analysis_queue
    if _analysis_queue is None:
        _analysis_queue = AnalysisQueue(poll_interval=settings.analysis_queue_poll_interval_seconds)
    return _analysis_queue


def get_content_feature_extractor() -> ContentFeatureExtractor:
    global _extractor
    if _extractor is None:
        _extractor = ContentFeatureExtractor(
            uow_factory,
            get_ocr_capability(),
            get_theme_capability(),
            retry_policy=get_retry_policy(),
            call_timeout=settings.analysis_capability_timeout_seconds,
            cancel_poll_interval=settings.analysis_capability_cancel_poll_seconds,
            max_workers=settings.analysis_capability_workers,
            failure_reason_max_length=settings.analysis_failure_reason_max_length,
        )
    return _extractor


def get_pipeline_runtime() -> PipelineRuntime:
    """Return the singleton runtime owning the worker and backfill threads."""
    global _pipeline_runtime
    if _pipeline_runtime is None:
        extractor = get_content_feature_extractor()
        worker = AnalysisWorker(
            get_analysis_queue(),
            extractor,
            retry_policy=get_retry_policy(),
            failure_reason_max_length=settings.analysis_failure_reason_max_length,
        )
        scanner = None
        if settings.backfill_enabled:
            scanner = BackfillScanner(
                uow_factory,
                get_analysis_queue(),
                interval_seconds=settings.backfill_interval_seconds,
                initial_delay_seconds=settings.backfill_initial_delay_seconds,
                pending_grace=timedelta(minutes=settings.backfill_pending_grace_minutes),
                batch_limit=settings.backfill_batch_limit,
            )
        _pipeline_runtime = PipelineRuntime(worker, scanner, extractor)
    return _pipeline_runtime


# ── Client insights ──────────────────────────────────────────────────────


def get_client_summary_cache() -> ClientSummaryCache:
    return ClientSummaryCache(
        uow_factory,
        limits=SummaryLimits(
            top_tags=settings.summary_top_tags,
            highlight_limit=settings.summary_highlight_limit,
            recent_comments=settings.summary_recent_comments,
        ),
    )


def get_approval_predictor() -> ApprovalPredictor:
    return ApprovalPredictor(
        uow_factory,
        get_client_summary_cache(),
        tag_weight=settings.predictor_tag_weight,
    )


# ── Billing webhooks ─────────────────────────────────────────────────────

_billing_event_applier: BillingEventApplier | None = None


def register_billing_event_applier(applier: BillingEventApplier) -> None:
    global _billing_event_applier
    _billing_event_applier = applier


def get_billing_event_applier() -> BillingEventApplier:
    global _billing_event_applier
    if _billing_event_applier is None:
        _billing_event_applier = LoggingBillingEventApplier()
    return _billing_event_applier


def get_webhook_ledger() -> WebhookEventLedger:
    return WebhookEventLedger(uow_factory)
