"""Owns the background pipeline threads for the lifetime of the process."""

from __future__ import annotations

import logging
import threading

from thumbsup.infra.tasks.cancellation import EventCancellationToken
from thumbsup.pipeline.analysis_worker import AnalysisWorker
from thumbsup.pipeline.backfill_scanner import BackfillScanner
from thumbsup.use_cases.content_analysis.analyze_submission import ContentFeatureExtractor

logger = logging.getLogger(__name__)


class PipelineRuntime:
    """Start the analysis worker and backfill scanner on daemon threads.

    Both share one cancellation token; :meth:`stop` fires it and joins.
    """

    def __init__(
        self,
        worker: AnalysisWorker,
        scanner: BackfillScanner | None = None,
        extractor: ContentFeatureExtractor | None = None,
    ) -> None:
        self._worker = worker
        self._scanner = scanner
        self._extractor = extractor
        self._token: EventCancellationToken | None = None
        self._threads: list[threading.Thread] = []

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        if self.is_running:
            logger.warning("Pipeline runtime already running")
            return
        self._token = EventCancellationToken()
        self._threads = [
            threading.Thread(
                target=self._worker.run,
                args=(self._token,),
                name="analysis-worker",
                daemon=True,
            )
        ]
        if self._scanner is not None:
            self._threads.append(
                threading.Thread(
                    target=self._scanner.run,
                    args=(self._token,),
                    name="backfill-scanner",
                    daemon=True,
                )
            )
        for thread in self._threads:
            thread.start()
        logger.info("Pipeline runtime started %d thread(s)", len(self._threads))

    def stop(self, timeout: float = 10.0) -> None:
        if self._token is None:
            return
        self._token.cancel()
        for thread in self._threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Thread %s did not stop within %.1fs", thread.name, timeout)
        if self._extractor is not None:
            self._extractor.close()
        self._threads = []
        self._token = None
        logger.info("Pipeline runtime stopped")
