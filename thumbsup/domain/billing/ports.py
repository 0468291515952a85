"""Ports for billing webhook ingestion."""

from __future__ import annotations

import abc

from .models import ProcessedWebhookEvent, WebhookEvent


class ProcessedWebhookEventRepository(abc.ABC):
    """Append-only ledger of handled provider events."""

    @abc.abstractmethod
    def exists(self, event_id: str) -> bool:
        ...

    @abc.abstractmethod
    def get(self, event_id: str) -> ProcessedWebhookEvent | None:
        ...

    @abc.abstractmethod
    def insert_if_absent(self, event: ProcessedWebhookEvent) -> bool:
        """Record *event*; return False when its id is already recorded.

        The unique key on ``event_id`` is the gate, so two concurrent
        callers can never both get True.
        """
        ...


class BillingEventApplier(abc.ABC):
    """Applies a billing event's side effects (subscription changes, receipts)."""

    @abc.abstractmethod
    def apply(self, event: WebhookEvent) -> None:
        ...
