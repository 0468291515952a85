"""SQLAlchemy implementation of ContentFeatureRepository."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from thumbsup.domain.content_analysis.models import AnalysisStatus, ContentFeature, ThemeInsights
from thumbsup.domain.content_analysis.ports import ContentFeatureRepository
from thumbsup.infra.db.models.insights import ContentFeatureRow
from thumbsup.infra.db.timestamps import as_utc


class SqlContentFeatureRepository(ContentFeatureRepository):
    """Upsert and read content features keyed on submission id."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, submission_id: uuid.UUID) -> ContentFeature | None:
        row = (
            self._session.query(ContentFeatureRow)
            .filter(ContentFeatureRow.submission_id == submission_id)
            .populate_existing()
            .first()
        )
        return self._to_domain(row) if row is not None else None

    def get_many(self, submission_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, ContentFeature]:
        if not submission_ids:
            return {}
        rows = (
            self._session.query(ContentFeatureRow)
            .filter(ContentFeatureRow.submission_id.in_(list(submission_ids)))
            .populate_existing()
            .all()
        )
        return {row.submission_id: self._to_domain(row) for row in rows}

    def mark_pending(self, submission_id: uuid.UUID, analyzed_at: datetime) -> None:
        stmt = sqlite_insert(ContentFeatureRow).values(
            submission_id=submission_id,
            analysis_status=AnalysisStatus.PENDING.value,
            last_analyzed_at=analyzed_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["submission_id"],
            set_={
                "analysis_status": stmt.excluded.analysis_status,
                "last_analyzed_at": stmt.excluded.last_analyzed_at,
                "failure_reason": None,
            },
        )
        self._session.execute(stmt)
        self._session.flush()

    def save(self, feature: ContentFeature) -> ContentFeature:
        stmt = sqlite_insert(ContentFeatureRow).values(
            submission_id=feature.submission_id,
            analysis_status=feature.status.value,
            ocr_text=feature.ocr_text,
            insights_json=feature.insights.to_dict(),
            failure_reason=feature.failure_reason,
            extracted_at=feature.extracted_at,
            last_analyzed_at=feature.last_analyzed_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["submission_id"],
            set_={
                "analysis_status": stmt.excluded.analysis_status,
                "ocr_text": stmt.excluded.ocr_text,
                "insights_json": stmt.excluded.insights_json,
                "failure_reason": stmt.excluded.failure_reason,
                "extracted_at": stmt.excluded.extracted_at,
                "last_analyzed_at": stmt.excluded.last_analyzed_at,
            },
        )
        self._session.execute(stmt)
        self._session.flush()
        return self.get(feature.submission_id)

    @staticmethod
    def _to_domain(row: ContentFeatureRow) -> ContentFeature:
        return ContentFeature(
            submission_id=row.submission_id,
            status=AnalysisStatus(row.analysis_status),
            ocr_text=row.ocr_text,
            insights=ThemeInsights.from_dict(row.insights_json),
            extracted_at=as_utc(row.extracted_at),
            last_analyzed_at=as_utc(row.last_analyzed_at),
            failure_reason=row.failure_reason,
        )
