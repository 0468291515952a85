"""Domain models for billing webhook ingestion."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class WebhookEvent:
    """A provider event as delivered, identified by the provider's event id."""

    event_id: str
    event_type: str
    occurred_at: datetime | None = None
    subscription_id: str | None = None
    customer_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.event_id or not self.event_id.strip():
            raise ValueError("event_id must be a non-empty string")
        if len(self.event_id) > 255:
            raise ValueError("event_id must be at most 255 characters")
        if not self.event_type or len(self.event_type) > 100:
            raise ValueError("event_type must be 1-100 characters")


@dataclass(frozen=True)
class ProcessedWebhookEvent:
    """Ledger row: the event was handled and must not be handled again."""

    event_id: str
    event_type: str
    processed_at: datetime
    occurred_at: datetime | None = None
    subscription_id: str | None = None
    customer_id: str | None = None


__all__ = ["ProcessedWebhookEvent", "WebhookEvent", "WebhookOutcome"]
