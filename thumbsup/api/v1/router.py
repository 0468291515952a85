"""Aggregate v1 router mounted under ``/api/v1``."""

from fastapi import APIRouter

from . import insights, webhooks

router = APIRouter()
router.include_router(insights.router, prefix="/insights", tags=["insights"])
router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
