"""ORM models; importing this package registers every table on ``Base``."""

from .billing import ProcessedWebhookEventRow
from .insights import ClientSummaryRow, ContentFeatureRow
from .submissions import Client, MediaFile, Review, Submission

__all__ = [
    "Client",
    "ClientSummaryRow",
    "ContentFeatureRow",
    "MediaFile",
    "ProcessedWebhookEventRow",
    "Review",
    "Submission",
]
