"""ClientSummaryCache: staleness-aware access to per-client summaries.

A cached summary stores the approved/rejected counts it was built from.
On every read the current counts are compared with the stored ones;
the summary is rebuilt only when no row exists or the counts differ.
Comment edits that leave the status untouched therefore do not
invalidate the cache.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from thumbsup.domain.client_insights.models import ClientSummary
from thumbsup.domain.client_insights.summary import SummaryLimits, build_client_summary
from thumbsup.domain.common.ports import NowFn, utc_now
from thumbsup.domain.common.uow import UnitOfWork

logger = logging.getLogger(__name__)


class ClientSummaryCache:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        *,
        limits: SummaryLimits | None = None,
        now_fn: NowFn = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._limits = limits or SummaryLimits()
        self._now = now_fn

    def get_or_refresh(self, client_id: uuid.UUID) -> ClientSummary | None:
        """Return the client's summary, rebuilding it if stale.

        Returns None when the client does not exist.  A client with no
        reviews gets an explicit insufficient-history summary.
        """
        with self._uow_factory() as uow:
            if not uow.clients.exists(client_id):
                return None

            current = uow.reviews.count_by_status(client_id)
            cached = uow.client_summaries.get(client_id)
            if cached is not None and not cached.is_stale_for(current):
                return cached

            reviews = uow.reviews.list_for_client(client_id)
            features = uow.content_features.get_many([review.submission_id for review in reviews])
            summary = build_client_summary(
                client_id,
                current,
                reviews,
                features,
                self._now(),
                self._limits,
            )
            stored = uow.client_summaries.save(summary)
            uow.commit()

        logger.info(
            "Rebuilt summary for client %s (%d approved, %d rejected; previous=%s)",
            client_id,
            current.approved,
            current.rejected,
            f"{cached.approved_count}/{cached.rejected_count}" if cached else "none",
        )
        return stored
