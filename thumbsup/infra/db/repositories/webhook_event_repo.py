"""SQLAlchemy implementation of ProcessedWebhookEventRepository."""

from __future__ import annotations

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from thumbsup.domain.billing.models import ProcessedWebhookEvent
from thumbsup.domain.billing.ports import ProcessedWebhookEventRepository
from thumbsup.infra.db.models.billing import ProcessedWebhookEventRow
from thumbsup.infra.db.timestamps import as_utc


class SqlProcessedWebhookEventRepository(ProcessedWebhookEventRepository):
    """Insert-only ledger; the primary key on event_id is the dedupe gate."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def exists(self, event_id: str) -> bool:
        return (
            self._session.query(ProcessedWebhookEventRow.event_id)
            .filter(ProcessedWebhookEventRow.event_id == event_id)
            .first()
        ) is not None

    def get(self, event_id: str) -> ProcessedWebhookEvent | None:
        row = (
            self._session.query(ProcessedWebhookEventRow)
            .filter(ProcessedWebhookEventRow.event_id == event_id)
            .first()
        )
        return self._to_domain(row) if row is not None else None

    def insert_if_absent(self, event: ProcessedWebhookEvent) -> bool:
        stmt = sqlite_insert(ProcessedWebhookEventRow).values(
            event_id=event.event_id,
            event_type=event.event_type,
            processed_at=event.processed_at,
            occurred_at=event.occurred_at,
            subscription_id=event.subscription_id,
            customer_id=event.customer_id,
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["event_id"])
        result = self._session.execute(stmt)
        self._session.flush()
        return result.rowcount == 1

    @staticmethod
    def _to_domain(row: ProcessedWebhookEventRow) -> ProcessedWebhookEvent:
        return ProcessedWebhookEvent(
            event_id=row.event_id,
            event_type=row.event_type,
            processed_at=as_utc(row.processed_at),
            occurred_at=as_utc(row.occurred_at),
            subscription_id=row.subscription_id,
            customer_id=row.customer_id,
        )
