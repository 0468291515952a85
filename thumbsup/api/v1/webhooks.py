"""Billing webhook ingestion.

- POST /webhooks/billing: apply a provider event at most once
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ...domain.billing.ports import BillingEventApplier
from ...domain.common.errors import ValidationError as DomainValidationError
from ...schemas.webhooks import WebhookAckResponse
from ...use_cases.billing.webhook_ledger import WebhookEventLedger, parse_webhook_payload
from ...wiring.bootstrap import get_billing_event_applier, get_webhook_ledger

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/billing", response_model=WebhookAckResponse)
async def receive_billing_webhook(
    payload: dict[str, Any] = Body(...),
    ledger: WebhookEventLedger = Depends(get_webhook_ledger),
    applier: BillingEventApplier = Depends(get_billing_event_applier),
):
    """Acknowledge a provider event; duplicates are acknowledged without side effects."""
    try:
        event = parse_webhook_payload(payload)
    except DomainValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        outcome = ledger.process_once(event, applier.apply)
    except Exception as e:
        logger.exception("Failed to process webhook event %s", event.event_id)
        # provider redelivers on 5xx
        raise HTTPException(status_code=500, detail=f"Failed to process event: {type(e).__name__}")

    return WebhookAckResponse(
        event_id=event.event_id,
        event_type=event.event_type,
        outcome=outcome.value,
    )
