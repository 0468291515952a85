"""
Content-analysis and client-insight SQLAlchemy models.

Tables:
    content_features: Extracted OCR text and theme tags, one row per submission
    client_summaries: Cached per-client preference summary, one row per client
"""
from sqlalchemy import (
    Column, Integer, Text, DateTime, JSON, Uuid,
    ForeignKey, Index,
)
from sqlalchemy.sql import func

from thumbsup.database import Base


class ContentFeatureRow(Base):
    """Analysis result for a submission (upsert key: submission_id)."""

    __tablename__ = "content_features"

    submission_id = Column(
        Uuid,
        ForeignKey("submissions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    analysis_status = Column(Text, nullable=False, default="pending")  # pending / completed / no_signals / no_images / failed
    ocr_text = Column(Text, nullable=True)
    insights_json = Column(JSON, nullable=True)  # ThemeInsights.to_dict()
    failure_reason = Column(Text, nullable=True)
    extracted_at = Column(DateTime(timezone=True), nullable=True)
    last_analyzed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_content_features_status_analyzed", "analysis_status", "last_analyzed_at"),
    )


class ClientSummaryRow(Base):
    """Cached preference summary (upsert key: client_id)."""

    __tablename__ = "client_summaries"

    client_id = Column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        primary_key=True,
    )
    summary_text = Column(Text, nullable=False)
    approved_count = Column(Integer, nullable=False, default=0)
    rejected_count = Column(Integer, nullable=False, default=0)
    total_count = Column(Integer, nullable=False, default=0)
    style_preferences_json = Column(JSON, nullable=True)
    recurring_positives_json = Column(JSON, nullable=True)
    rejection_reasons_json = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
