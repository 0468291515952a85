"""WebhookEventLedger: exactly-once handling of billing provider events.

Providers deliver at least once, so the same event id can arrive many
times, possibly concurrently.  The ledger's insert on a unique event id
is the only gate: whoever inserts the row applies the side effects, in
the same transaction, and everybody else sees a duplicate.  If the side
effects raise, the transaction (ledger row included) rolls back and the
provider's next delivery gets another chance.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from thumbsup.domain.billing.models import ProcessedWebhookEvent, WebhookEvent, WebhookOutcome
from thumbsup.domain.billing.ports import BillingEventApplier
from thumbsup.domain.common.errors import ValidationError
from thumbsup.domain.common.ports import NowFn, utc_now
from thumbsup.domain.common.uow import UnitOfWork

logger = logging.getLogger(__name__)


class WebhookEventLedger:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        *,
        now_fn: NowFn = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._now = now_fn

    def is_processed(self, event_id: str) -> bool:
        with self._uow_factory() as uow:
            return uow.webhook_events.exists(event_id)

    def mark_processed(
        self,
        event_id: str,
        event_type: str,
        occurred_at: datetime | None = None,
        subscription_id: str | None = None,
        customer_id: str | None = None,
    ) -> bool:
        """Record the event; return False (and change nothing) if already recorded."""
        with self._uow_factory() as uow:
            inserted = uow.webhook_events.insert_if_absent(
                ProcessedWebhookEvent(
                    event_id=event_id,
                    event_type=event_type,
                    processed_at=self._now(),
                    occurred_at=occurred_at,
                    subscription_id=subscription_id,
                    customer_id=customer_id,
                )
            )
            uow.commit()
        if not inserted:
            logger.info("Webhook event %s (%s) already processed", event_id, event_type)
        return inserted

    def process_once(
        self,
        event: WebhookEvent,
        apply: Callable[[WebhookEvent], None],
    ) -> WebhookOutcome:
        """Apply *event*'s side effects unless it was handled before.

        Raises:
            Exception: Whatever *apply* raised; the ledger row is rolled
                back with the rest of the transaction.
        """
        with self._uow_factory() as uow:
            inserted = uow.webhook_events.insert_if_absent(
                ProcessedWebhookEvent(
                    event_id=event.event_id,
                    event_type=event.event_type,
                    processed_at=self._now(),
                    occurred_at=event.occurred_at,
                    subscription_id=event.subscription_id,
                    customer_id=event.customer_id,
                )
            )
            if not inserted:
                uow.rollback()
                logger.info("Skipping duplicate webhook event %s (%s)", event.event_id, event.event_type)
                return WebhookOutcome.DUPLICATE

            apply(event)
            uow.commit()

        logger.info("Processed webhook event %s (%s)", event.event_id, event.event_type)
        return WebhookOutcome.PROCESSED


class LoggingBillingEventApplier(BillingEventApplier):
    """Default applier: records the event in the log and nothing else.

    The subscription service that actually changes plans and sends
    receipts lives outside this package and replaces this applier.
    """

    def apply(self, event: WebhookEvent) -> None:
        logger.info(
            "Billing event %s: type=%s subscription=%s customer=%s",
            event.event_id, event.event_type, event.subscription_id, event.customer_id,
        )


def parse_webhook_payload(payload: dict[str, Any]) -> WebhookEvent:
    """Build a WebhookEvent from a provider notification body.

    Expects ``event_id``, ``event_type``, optional ISO-8601
    ``occurred_at`` and a ``data`` object.  For ``subscription.*``
    events the subscription id falls back to ``data.id``.

    Raises:
        ValidationError: If required fields are missing or malformed.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Webhook payload must be a JSON object")

    event_id = payload.get("event_id")
    event_type = payload.get("event_type")
    if not isinstance(event_id, str) or not event_id.strip():
        raise ValidationError("Webhook payload is missing 'event_id'")
    if not isinstance(event_type, str) or not event_type.strip():
        raise ValidationError("Webhook payload is missing 'event_type'")

    occurred_at: datetime | None = None
    raw_occurred = payload.get("occurred_at")
    if isinstance(raw_occurred, datetime):
        occurred_at = raw_occurred
    elif isinstance(raw_occurred, str) and raw_occurred:
        try:
            occurred_at = datetime.fromisoformat(raw_occurred.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError(f"Invalid 'occurred_at': {raw_occurred}") from exc
    if occurred_at is not None:
        occurred_at = (
            occurred_at.astimezone(timezone.utc)
            if occurred_at.tzinfo is not None
            else occurred_at.replace(tzinfo=timezone.utc)
        )

    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise ValidationError("Webhook 'data' must be an object")

    subscription_id = data.get("subscription_id")
    if subscription_id is None:
        subscription_id = data.get("id")

    try:
        return WebhookEvent(
            event_id=event_id.strip(),
            event_type=event_type.strip(),
            occurred_at=occurred_at,
            subscription_id=str(subscription_id) if subscription_id is not None else None,
            customer_id=str(data["customer_id"]) if data.get("customer_id") is not None else None,
            data=data,
        )
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
