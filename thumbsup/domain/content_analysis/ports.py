"""Ports (abstract interfaces) for the content-analysis domain.

These define WHAT the pipeline needs from the outside world without
specifying HOW it's provided.  Repository implementations live in
``thumbsup.infra.db.repositories``; capability implementations are
registered by the host application.
"""

from __future__ import annotations

import abc
import uuid
from collections.abc import Sequence
from datetime import datetime

from .models import ContentFeature, SubmissionSnapshot


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class OcrCapability(abc.ABC):
    """Extract printed text from an image."""

    @abc.abstractmethod
    def extract_text(self, image_path: str) -> str | None:
        """Return the text found in the image, or None/"" when there is none.

        Raises:
            TransientCapabilityError: On timeouts, rate limits or dropped
                connections; the caller retries with backoff.
            CapabilityError: On failures that retrying cannot fix.
        """
        ...


class ThemeExtractionCapability(abc.ABC):
    """Describe an image's visual themes."""

    @abc.abstractmethod
    def extract_themes(self, image_path: str) -> str | None:
        """Return the model's raw answer; the caller parses it.

        Raises:
            TransientCapabilityError: On timeouts, rate limits or dropped
                connections; the caller retries with backoff.
            CapabilityError: On failures that retrying cannot fix.
        """
        ...


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class SubmissionRepository(abc.ABC):
    """Read access to submissions and their media."""

    @abc.abstractmethod
    def get_snapshot(self, submission_id: uuid.UUID) -> SubmissionSnapshot | None:
        ...

    @abc.abstractmethod
    def list_ids_needing_analysis(
        self,
        *,
        stale_before: datetime,
        limit: int,
    ) -> list[uuid.UUID]:
        """Submissions with no content feature, or still pending since *stale_before*.

        Pending rows whose ``last_analyzed_at`` is missing count as stale.
        Terminal states are never returned.  Oldest submissions first.
        """
        ...


class ContentFeatureRepository(abc.ABC):
    """Persist and retrieve one ContentFeature per submission."""

    @abc.abstractmethod
    def get(self, submission_id: uuid.UUID) -> ContentFeature | None:
        ...

    @abc.abstractmethod
    def get_many(self, submission_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, ContentFeature]:
        ...

    @abc.abstractmethod
    def mark_pending(self, submission_id: uuid.UUID, analyzed_at: datetime) -> None:
        """Upsert ``pending`` status, keeping any previously extracted signals."""
        ...

    @abc.abstractmethod
    def save(self, feature: ContentFeature) -> ContentFeature:
        """Insert or replace the feature keyed on its submission id."""
        ...
