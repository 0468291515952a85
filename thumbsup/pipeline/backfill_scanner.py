"""Periodic scanner that re-enqueues orphaned analysis work.

The queue lives in memory, so a restart loses whatever was waiting and
a crash mid-analysis leaves a ``pending`` row behind.  Every tick this
scanner finds submissions with no content feature, or with one still
``pending`` past the grace period, and enqueues them again.  Terminal
states are never revisited.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable

from thumbsup.domain.common.ports import CancellationToken, NowFn, utc_now
from thumbsup.domain.common.uow import UnitOfWork
from thumbsup.pipeline.analysis_queue import AnalysisQueue

logger = logging.getLogger(__name__)


class BackfillScanner:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        queue: AnalysisQueue,
        *,
        interval_seconds: float = 300.0,
        initial_delay_seconds: float = 10.0,
        pending_grace: timedelta = timedelta(minutes=5),
        batch_limit: int = 500,
        now_fn: NowFn = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._queue = queue
        self._interval = interval_seconds
        self._initial_delay = initial_delay_seconds
        self._grace = pending_grace
        self._limit = batch_limit
        self._now = now_fn

    def run(self, cancel: CancellationToken) -> None:
        logger.info(
            "Backfill scanner started (interval=%.0fs, grace=%s)", self._interval, self._grace
        )
        if cancel.wait(self._initial_delay):
            logger.info("Backfill scanner stopped before first scan")
            return
        while not cancel.is_cancelled():
            try:
                self.scan_once()
            except Exception:
                logger.exception("Backfill scan failed; will retry next interval")
            if cancel.wait(self._interval):
                break
        logger.info("Backfill scanner stopped")

    def scan_once(self) -> int:
        """Enqueue every submission needing analysis; return how many were found."""
        stale_before = self._now() - self._grace
        with self._uow_factory() as uow:
            submission_ids = uow.submissions.list_ids_needing_analysis(
                stale_before=stale_before,
                limit=self._limit,
            )

        enqueued = sum(1 for submission_id in submission_ids if self._queue.enqueue(submission_id))
        if submission_ids:
            logger.info(
                "Backfill found %d submission(s) needing analysis (%d newly queued)",
                len(submission_ids), enqueued,
            )
        return len(submission_ids)
