"""SQLAlchemy Unit of Work: concrete implementation of the domain UoW port.

Wraps a SQLAlchemy Session and exposes repository instances that share
the same session, so a use case can read/write across multiple repos
within one transaction.
"""

from __future__ import annotations

from typing import Self

from sqlalchemy.orm import Session, sessionmaker

from thumbsup.domain.common.uow import UnitOfWork
from thumbsup.infra.db.repositories.client_repo import SqlClientRepository, SqlReviewRepository
from thumbsup.infra.db.repositories.client_summary_repo import SqlClientSummaryRepository
from thumbsup.infra.db.repositories.content_feature_repo import SqlContentFeatureRepository
from thumbsup.infra.db.repositories.submission_repo import SqlSubmissionRepository
from thumbsup.infra.db.repositories.webhook_event_repo import SqlProcessedWebhookEventRepository


class SqlUnitOfWork(UnitOfWork):
    """Transactional boundary backed by a SQLAlchemy Session."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def __enter__(self) -> Self:
        self.session: Session = self._session_factory()
        self.clients = SqlClientRepository(self.session)
        self.submissions = SqlSubmissionRepository(self.session)
        self.content_features = SqlContentFeatureRepository(self.session)
        self.reviews = SqlReviewRepository(self.session)
        self.client_summaries = SqlClientSummaryRepository(self.session)
        self.webhook_events = SqlProcessedWebhookEventRepository(self.session)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.rollback()
        self.session.close()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
