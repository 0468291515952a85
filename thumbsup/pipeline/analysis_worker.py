"""Background consumer of the AnalysisQueue.

Each dequeued submission is handed to the ContentFeatureExtractor.
Transient failures are retried with exponential backoff; terminal
failures (or exhausted retries) are recorded as ``failed`` with the
reason.  No single submission can stop the loop.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass

from thumbsup.domain.common.ports import CancellationToken
from thumbsup.domain.content_analysis.errors import (
    AnalysisCancelled,
    failure_reason,
    is_transient_error,
)
from thumbsup.pipeline.analysis_queue import AnalysisQueue
from thumbsup.use_cases.content_analysis.analyze_submission import ContentFeatureExtractor
from thumbsup.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class WorkerStats:
    processed: int = 0
    failed: int = 0
    retried: int = 0
    cancelled: int = 0


class AnalysisWorker:
    """Dequeue submission ids and analyze them until cancelled."""

    def __init__(
        self,
        queue: AnalysisQueue,
        extractor: ContentFeatureExtractor,
        retry_policy: RetryPolicy | None = None,
        failure_reason_max_length: int = 4000,
    ) -> None:
        self._queue = queue
        self._extractor = extractor
        self._retry = retry_policy or RetryPolicy()
        self._reason_max = failure_reason_max_length
        self._stats_lock = threading.Lock()
        self.stats = WorkerStats()

    def run(self, cancel: CancellationToken) -> None:
        logger.info("Analysis worker started")
        for submission_id in self._queue.dequeue(cancel):
            try:
                self.process(submission_id, cancel)
            except Exception:
                # never let one submission stop the loop
                logger.exception("Unexpected error while processing submission %s", submission_id)
        logger.info("Analysis worker stopped (stats=%s)", self.stats)

    def process(self, submission_id: uuid.UUID, cancel: CancellationToken) -> bool:
        """Analyze one submission; return True when a feature was stored."""
        for attempt in range(1, self._retry.attempts + 1):
            try:
                self._extractor.analyze(submission_id, cancel)
            except AnalysisCancelled:
                logger.info("Analysis of submission %s cancelled; backfill will retry", submission_id)
                self._bump("cancelled")
                return False
            except Exception as exc:
                if is_transient_error(exc) and attempt < self._retry.attempts:
                    delay = self._retry.delay_for(attempt - 1, exc)
                    logger.warning(
                        "Transient failure analyzing submission %s (attempt %d/%d): %s. Retrying in %.1fs",
                        submission_id, attempt, self._retry.attempts, exc, delay,
                    )
                    self._bump("retried")
                    if cancel.wait(delay):
                        self._bump("cancelled")
                        return False
                    continue

                logger.error(
                    "Analysis of submission %s failed after %d attempt(s): %s",
                    submission_id, attempt, exc,
                )
                self._record_failure(submission_id, exc)
                return False
            else:
                self._bump("processed")
                return True
        return False

    def _record_failure(self, submission_id: uuid.UUID, error: Exception) -> None:
        self._bump("failed")
        try:
            self._extractor.record_failure(submission_id, failure_reason(error, self._reason_max))
        except Exception:
            logger.exception("Could not record failure for submission %s", submission_id)

    def _bump(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self.stats, counter, getattr(self.stats, counter) + 1)
