"""SQLAlchemy implementations of ClientRepository and ReviewRepository."""

from __future__ import annotations

import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from thumbsup.domain.client_insights.models import ReviewCounts, ReviewRecord, ReviewStatus
from thumbsup.domain.client_insights.ports import ClientRepository, ReviewRepository
from thumbsup.infra.db.models.submissions import Client, Review, Submission
from thumbsup.infra.db.timestamps import as_utc


class SqlClientRepository(ClientRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def exists(self, client_id: uuid.UUID) -> bool:
        return (
            self._session.query(Client.id)
            .filter(Client.id == client_id)
            .first()
        ) is not None


class SqlReviewRepository(ReviewRepository):
    """Aggregate review history across a client's submissions."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def count_by_status(self, client_id: uuid.UUID) -> ReviewCounts:
        rows = (
            self._session.query(Review.status, func.count(Review.id))
            .join(Submission, Submission.id == Review.submission_id)
            .filter(Submission.client_id == client_id)
            .group_by(Review.status)
            .all()
        )
        by_status = {status: count for status, count in rows}
        return ReviewCounts(
            approved=by_status.get(ReviewStatus.APPROVED.value, 0),
            rejected=by_status.get(ReviewStatus.REJECTED.value, 0),
        )

    def list_for_client(self, client_id: uuid.UUID) -> list[ReviewRecord]:
        rows = (
            self._session.query(Review)
            .join(Submission, Submission.id == Review.submission_id)
            .filter(Submission.client_id == client_id)
            .filter(Review.status.in_([status.value for status in ReviewStatus]))
            .order_by(
                Review.reviewed_at.is_(None),
                Review.reviewed_at.desc(),
                Submission.created_at.desc(),
                Review.submission_id,
            )
            .all()
        )
        return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_domain(row: Review) -> ReviewRecord:
        return ReviewRecord(
            submission_id=row.submission_id,
            status=ReviewStatus(row.status),
            comment=row.comment,
            reviewed_at=as_utc(row.reviewed_at),
        )
