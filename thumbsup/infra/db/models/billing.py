"""
Billing webhook ledger SQLAlchemy model.

Tables:
    processed_webhook_events: Provider events already handled (insert-only)
"""
from sqlalchemy import Column, String, DateTime

from thumbsup.database import Base


class ProcessedWebhookEventRow(Base):
    __tablename__ = "processed_webhook_events"

    event_id = Column(String(255), primary_key=True)
    event_type = Column(String(100), nullable=False, index=True)
    processed_at = Column(DateTime(timezone=True), nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=True)
    subscription_id = Column(String(255), nullable=True, index=True)
    customer_id = Column(String(255), nullable=True)
