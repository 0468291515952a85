"""SQLAlchemy implementation of ClientSummaryRepository."""

from __future__ import annotations

import uuid

from sqlalchemy import or_
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from thumbsup.domain.client_insights.models import ClientSummary
from thumbsup.domain.client_insights.ports import ClientSummaryRepository
from thumbsup.infra.db.models.insights import ClientSummaryRow
from thumbsup.infra.db.timestamps import as_utc


class SqlClientSummaryRepository(ClientSummaryRepository):
    """Conditional upsert of cached client summaries."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, client_id: uuid.UUID) -> ClientSummary | None:
        row = (
            self._session.query(ClientSummaryRow)
            .filter(ClientSummaryRow.client_id == client_id)
            .populate_existing()
            .first()
        )
        return self._to_domain(row) if row is not None else None

    def save(self, summary: ClientSummary) -> ClientSummary:
        stmt = sqlite_insert(ClientSummaryRow).values(
            client_id=summary.client_id,
            summary_text=summary.summary_text,
            approved_count=summary.approved_count,
            rejected_count=summary.rejected_count,
            total_count=summary.total_count,
            style_preferences_json=list(summary.style_preferences),
            recurring_positives_json=list(summary.recurring_positives),
            rejection_reasons_json=list(summary.rejection_reasons),
            updated_at=summary.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["client_id"],
            set_={
                "summary_text": stmt.excluded.summary_text,
                "approved_count": stmt.excluded.approved_count,
                "rejected_count": stmt.excluded.rejected_count,
                "total_count": stmt.excluded.total_count,
                "style_preferences_json": stmt.excluded.style_preferences_json,
                "recurring_positives_json": stmt.excluded.recurring_positives_json,
                "rejection_reasons_json": stmt.excluded.rejection_reasons_json,
                "updated_at": stmt.excluded.updated_at,
            },
            # An older timestamp only loses when the counts it was built from match
            where=or_(
                ClientSummaryRow.updated_at <= stmt.excluded.updated_at,
                ClientSummaryRow.approved_count != stmt.excluded.approved_count,
                ClientSummaryRow.rejected_count != stmt.excluded.rejected_count,
            ),
        )
        self._session.execute(stmt)
        self._session.flush()
        return self.get(summary.client_id)

    @staticmethod
    def _to_domain(row: ClientSummaryRow) -> ClientSummary:
        return ClientSummary(
            client_id=row.client_id,
            summary_text=row.summary_text,
            approved_count=row.approved_count or 0,
            rejected_count=row.rejected_count or 0,
            updated_at=as_utc(row.updated_at),
            style_preferences=tuple(row.style_preferences_json or ()),
            recurring_positives=tuple(row.recurring_positives_json or ()),
            rejection_reasons=tuple(row.rejection_reasons_json or ()),
        )
