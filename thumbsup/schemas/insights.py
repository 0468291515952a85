"""Pydantic response models for the insights API.

Domain value objects stay framework-free; these mirror them for HTTP
with ``from_domain()`` classmethods.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Self

from pydantic import BaseModel, Field

from ..domain.client_insights.models import ApprovalPrediction, ClientSummary
from ..domain.content_analysis.models import ContentFeature, ThemeInsights


class ThemeInsightsResponse(BaseModel):
    subjects: list[str] = Field(default_factory=list)
    vibes: list[str] = Field(default_factory=list)
    notable_elements: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, insights: ThemeInsights) -> Self:
        return cls(
            subjects=list(insights.subjects),
            vibes=list(insights.vibes),
            notable_elements=list(insights.notable_elements),
            colors=list(insights.colors),
            keywords=list(insights.keywords),
        )


class ContentFeatureResponse(BaseModel):
    """Stored analysis of one submission."""

    submission_id: uuid.UUID
    status: str
    ocr_text: Optional[str] = None
    insights: ThemeInsightsResponse
    tags: list[str]
    extracted_at: Optional[datetime] = None
    last_analyzed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    content_summary: Optional[str] = None

    @classmethod
    def from_domain(cls, feature: ContentFeature, content_summary: Optional[str] = None) -> Self:
        return cls(
            submission_id=feature.submission_id,
            status=feature.status.value,
            ocr_text=feature.ocr_text,
            insights=ThemeInsightsResponse.from_domain(feature.insights),
            tags=list(feature.tags),
            extracted_at=feature.extracted_at,
            last_analyzed_at=feature.last_analyzed_at,
            failure_reason=feature.failure_reason,
            content_summary=content_summary,
        )


class ClientSummaryResponse(BaseModel):
    client_id: uuid.UUID
    summary: str
    has_sufficient_history: bool
    style_preferences: list[str]
    recurring_positives: list[str]
    rejection_reasons: list[str]
    approved_count: int
    rejected_count: int
    total_count: int
    generated_at: datetime

    @classmethod
    def from_domain(cls, summary: ClientSummary) -> Self:
        return cls(
            client_id=summary.client_id,
            summary=summary.summary_text,
            has_sufficient_history=summary.has_sufficient_history,
            style_preferences=list(summary.style_preferences),
            recurring_positives=list(summary.recurring_positives),
            rejection_reasons=list(summary.rejection_reasons),
            approved_count=summary.approved_count,
            rejected_count=summary.rejected_count,
            total_count=summary.total_count,
            generated_at=summary.updated_at,
        )


class ApprovalPredictionResponse(BaseModel):
    client_id: uuid.UUID
    submission_id: uuid.UUID
    status: str
    probability: Optional[float] = Field(None, ge=0.0, le=1.0)
    base_rate: Optional[float] = None
    matched_tags: list[str] = Field(default_factory=list)
    limited_signals: bool = False
    rationale: str

    @classmethod
    def from_domain(cls, prediction: ApprovalPrediction) -> Self:
        return cls(
            client_id=prediction.client_id,
            submission_id=prediction.submission_id,
            status=prediction.status.value,
            probability=prediction.probability,
            base_rate=prediction.base_rate,
            matched_tags=list(prediction.matched_tags),
            limited_signals=prediction.limited_signals,
            rationale=prediction.rationale,
        )


class ReanalyzeResponse(BaseModel):
    submission_id: uuid.UUID
    queued: bool
    queue_depth: int
