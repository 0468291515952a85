"""ContentFeatureExtractor: turns a submission's images into a ContentFeature.

For one submission:
  1. Mark the feature ``pending`` (stamping last_analyzed_at) so a crash
     mid-analysis leaves a row the backfill scanner recognizes as stuck.
  2. No image media → ``no_images`` without calling any capability.
  3. Per image, call OCR and theme extraction independently, each with
     its own timeout and transient-failure retry.  A call that still
     fails contributes nothing.
  4. Concatenate OCR text in media order and combine per-image insights.
  5. Every call failed → ``failed``; nothing extracted → ``no_signals``;
     otherwise ``completed``.

Concurrent calls for the same submission are serialized by a per-id
lock; the final write is an upsert, so a second process racing on the
same id converges on the same row.  The database session is not held
open while capabilities run.

Capability calls run on a bounded thread pool.  Waiting on a call honours
both its timeout and the cancellation token, but a call that never
returns keeps its thread; once every pool thread is stuck, later calls
queue behind them and time out.
"""

from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Callable

from thumbsup.domain.common.ports import CancellationToken, NeverCancelledToken, NowFn, utc_now
from thumbsup.domain.common.uow import UnitOfWork
from thumbsup.domain.content_analysis.errors import (
    AnalysisCancelled,
    CapabilityTimeoutError,
    failure_reason,
)
from thumbsup.domain.content_analysis.models import (
    AnalysisStatus,
    ContentFeature,
    MediaItem,
    ThemeInsights,
)
from thumbsup.domain.content_analysis.parsing import parse_theme_insights
from thumbsup.domain.content_analysis.ports import OcrCapability, ThemeExtractionCapability
from thumbsup.utils.keyed_lock import KeyedLock
from thumbsup.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageAnalysis:
    """What one image contributed."""

    text: str | None
    insights: ThemeInsights
    failed_calls: int
    last_error: str | None = None


class ContentFeatureExtractor:
    """Run OCR and theme extraction over a submission and persist the result."""

    CALLS_PER_IMAGE = 2

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        ocr: OcrCapability,
        themes: ThemeExtractionCapability,
        *,
        retry_policy: RetryPolicy | None = None,
        call_timeout: float | None = 60.0,
        cancel_poll_interval: float = 0.25,
        executor: ThreadPoolExecutor | None = None,
        max_workers: int = 4,
        locks: KeyedLock | None = None,
        now_fn: NowFn = utc_now,
        failure_reason_max_length: int = 4000,
    ) -> None:
        self._uow_factory = uow_factory
        self._ocr = ocr
        self._themes = themes
        self._retry = retry_policy or RetryPolicy()
        self._call_timeout = call_timeout if call_timeout and call_timeout > 0 else None
        self._cancel_poll = max(cancel_poll_interval, 0.01)
        self._owns_executor = executor is None and self._call_timeout is not None
        if self._owns_executor:
            executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="capability")
        self._executor = executor
        self._locks = locks or KeyedLock()
        self._now = now_fn
        self._reason_max = failure_reason_max_length

    # ── Public API ───────────────────────────────────────────────────────

    def analyze(
        self,
        submission_id: uuid.UUID,
        cancel: CancellationToken | None = None,
    ) -> ContentFeature | None:
        """Analyze *submission_id* and upsert its ContentFeature.

        Returns the stored feature, or None if the submission does not
        exist.

        Raises:
            AnalysisCancelled: Shutdown was requested; the row stays
                ``pending`` for the backfill scanner.
        """
        token = cancel or NeverCancelledToken()
        with self._locks.hold(submission_id):
            with self._uow_factory() as uow:
                snapshot = uow.submissions.get_snapshot(submission_id)
                if snapshot is None:
                    logger.warning("Submission %s not found, skipping analysis", submission_id)
                    return None

                images = snapshot.images
                if not images:
                    now = self._now()
                    feature = uow.content_features.save(
                        ContentFeature(
                            submission_id=submission_id,
                            status=AnalysisStatus.NO_IMAGES,
                            last_analyzed_at=now,
                        )
                    )
                    uow.commit()
                    logger.info("Submission %s has no images; marked no_images", submission_id)
                    return feature

                uow.content_features.mark_pending(submission_id, self._now())
                uow.commit()

            results: list[ImageAnalysis] = []
            for image in images:
                if token.is_cancelled():
                    raise AnalysisCancelled(f"analysis of submission {submission_id} cancelled")
                results.append(self._analyze_image(image, token))

            feature = self._build_feature(submission_id, results)
            with self._uow_factory() as uow:
                stored = uow.content_features.save(feature)
                uow.commit()

        logger.info(
            "Analyzed submission %s: status=%s images=%d tags=%d",
            submission_id, stored.status.value, len(images), len(stored.tags),
        )
        return stored

    def record_failure(self, submission_id: uuid.UUID, reason: str) -> ContentFeature | None:
        """Upsert ``failed`` with *reason*; previous signals are cleared."""
        with self._locks.hold(submission_id):
            with self._uow_factory() as uow:
                if uow.submissions.get_snapshot(submission_id) is None:
                    logger.warning("Cannot record failure for missing submission %s", submission_id)
                    return None
                feature = uow.content_features.save(
                    ContentFeature(
                        submission_id=submission_id,
                        status=AnalysisStatus.FAILED,
                        last_analyzed_at=self._now(),
                        failure_reason=reason[: self._reason_max],
                    )
                )
                uow.commit()
        return feature

    def close(self) -> None:
        """Release capability threads without waiting for stuck calls."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    # ── Internals ────────────────────────────────────────────────────────

    def _analyze_image(self, image: MediaItem, cancel: CancellationToken) -> ImageAnalysis:
        failed = 0
        last_error: str | None = None

        text: str | None = None
        try:
            raw_text = self._call(self._ocr.extract_text, image.path, cancel, "OCR")
            text = raw_text.strip() if isinstance(raw_text, str) and raw_text.strip() else None
        except AnalysisCancelled:
            raise
        except Exception as exc:
            failed += 1
            last_error = failure_reason(exc, self._reason_max)
            logger.warning("OCR failed for %s: %s", image.path, exc)

        insights = ThemeInsights.empty()
        try:
            raw_themes = self._call(self._themes.extract_themes, image.path, cancel, "Theme extraction")
            insights = parse_theme_insights(raw_themes)
        except AnalysisCancelled:
            raise
        except Exception as exc:
            failed += 1
            last_error = failure_reason(exc, self._reason_max)
            logger.warning("Theme extraction failed for %s: %s", image.path, exc)

        return ImageAnalysis(text=text, insights=insights, failed_calls=failed, last_error=last_error)

    def _call(
        self,
        fn: Callable[[str], str | None],
        image_path: str,
        cancel: CancellationToken,
        description: str,
    ) -> str | None:
        return self._retry.call(
            lambda: self._with_timeout(fn, image_path, description, cancel),
            cancel=cancel,
            description=f"{description} for {image_path}",
        )

    def _with_timeout(
        self,
        fn: Callable[[str], str | None],
        image_path: str,
        description: str,
        cancel: CancellationToken,
    ) -> str | None:
        if self._call_timeout is None or self._executor is None:
            return fn(image_path)
        future = self._executor.submit(fn, image_path)
        deadline = time.monotonic() + self._call_timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._abandon(future, description, image_path)
                raise CapabilityTimeoutError(
                    f"{description} timed out after {self._call_timeout:.0f}s"
                )
            try:
                return future.result(timeout=min(remaining, self._cancel_poll))
            except FuturesTimeoutError:
                if cancel.is_cancelled():
                    self._abandon(future, description, image_path)
                    raise AnalysisCancelled(f"{description} for {image_path} cancelled") from None

    def _abandon(self, future: Future, description: str, image_path: str) -> None:
        # A running call cannot be interrupted; it keeps its executor thread until it returns
        if not future.cancel():
            logger.warning(
                "%s for %s is still running after being abandoned; "
                "its capability thread stays busy until the call returns",
                description, image_path,
            )

    def _build_feature(self, submission_id: uuid.UUID, results: list[ImageAnalysis]) -> ContentFeature:
        now = self._now()
        total_calls = len(results) * self.CALLS_PER_IMAGE
        failed_calls = sum(result.failed_calls for result in results)

        if total_calls and failed_calls == total_calls:
            last_error = next(
                (result.last_error for result in reversed(results) if result.last_error), "unknown error"
            )
            return ContentFeature(
                submission_id=submission_id,
                status=AnalysisStatus.FAILED,
                last_analyzed_at=now,
                failure_reason=(
                    f"All {total_calls} capability calls failed; last error: {last_error}"
                )[: self._reason_max],
            )

        ocr_text = "\n".join(result.text for result in results if result.text) or None
        insights = ThemeInsights.combine(result.insights for result in results)

        if ocr_text is None and not insights.has_any_data:
            return ContentFeature(
                submission_id=submission_id,
                status=AnalysisStatus.NO_SIGNALS,
                insights=insights,
                last_analyzed_at=now,
            )

        return ContentFeature(
            submission_id=submission_id,
            status=AnalysisStatus.COMPLETED,
            ocr_text=ocr_text,
            insights=insights,
            extracted_at=now,
            last_analyzed_at=now,
        )
