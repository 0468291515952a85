"""Unit of Work port.

A use case opens one ``with uow:`` block per transaction and reaches every
repository through the attributes declared here.  The SQL implementation
lives in ``thumbsup.infra.db.uow``.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from thumbsup.domain.billing.ports import ProcessedWebhookEventRepository
    from thumbsup.domain.client_insights.ports import (
        ClientRepository,
        ClientSummaryRepository,
        ReviewRepository,
    )
    from thumbsup.domain.content_analysis.ports import (
        ContentFeatureRepository,
        SubmissionRepository,
    )


class UnitOfWork(abc.ABC):
    """Transactional boundary over a set of repositories."""

    clients: ClientRepository
    submissions: SubmissionRepository
    content_features: ContentFeatureRepository
    reviews: ReviewRepository
    client_summaries: ClientSummaryRepository
    webhook_events: ProcessedWebhookEventRepository

    @abc.abstractmethod
    def __enter__(self) -> Self:
        ...

    @abc.abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    @abc.abstractmethod
    def commit(self) -> None:
        ...

    @abc.abstractmethod
    def rollback(self) -> None:
        ...
