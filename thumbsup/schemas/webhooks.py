"""Pydantic models for billing webhook ingestion."""

from __future__ import annotations

from pydantic import BaseModel


class WebhookAckResponse(BaseModel):
    event_id: str
    event_type: str
    outcome: str  # processed / duplicate
