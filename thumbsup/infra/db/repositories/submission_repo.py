"""SQLAlchemy implementation of SubmissionRepository."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from thumbsup.domain.content_analysis.models import MediaItem, MediaKind, SubmissionSnapshot
from thumbsup.domain.content_analysis.ports import SubmissionRepository
from thumbsup.infra.db.models.insights import ContentFeatureRow
from thumbsup.infra.db.models.submissions import MediaFile, Submission


class SqlSubmissionRepository(SubmissionRepository):
    """Read submissions and their media via SQLAlchemy."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_snapshot(self, submission_id: uuid.UUID) -> SubmissionSnapshot | None:
        row = (
            self._session.query(Submission)
            .options(selectinload(Submission.media_files))
            .filter(Submission.id == submission_id)
            .first()
        )
        if row is None:
            return None
        return SubmissionSnapshot(
            submission_id=row.id,
            client_id=row.client_id,
            media=tuple(self._to_media(media) for media in row.media_files),
            message=row.message,
        )

    def list_ids_needing_analysis(
        self,
        *,
        stale_before: datetime,
        limit: int,
    ) -> list[uuid.UUID]:
        stuck_pending = and_(
            ContentFeatureRow.analysis_status == "pending",
            or_(
                ContentFeatureRow.last_analyzed_at.is_(None),
                ContentFeatureRow.last_analyzed_at < stale_before,
            ),
        )
        rows = (
            self._session.query(Submission.id)
            .outerjoin(ContentFeatureRow, ContentFeatureRow.submission_id == Submission.id)
            .filter(or_(ContentFeatureRow.submission_id.is_(None), stuck_pending))
            .order_by(Submission.created_at.asc(), Submission.id.asc())
            .limit(limit)
            .all()
        )
        return [row.id for row in rows]

    @staticmethod
    def _to_media(row: MediaFile) -> MediaItem:
        try:
            kind = MediaKind(row.file_type)
        except ValueError:
            kind = MediaKind.VIDEO
        return MediaItem(
            media_id=row.id,
            kind=kind,
            path=row.file_path,
            order=row.display_order or 0,
        )
