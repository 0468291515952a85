"""Ports for the client-insights domain.

Concrete implementations live in ``thumbsup.infra.db.repositories``.
"""

from __future__ import annotations

import abc
import uuid

from .models import ClientSummary, ReviewCounts, ReviewRecord


class ClientRepository(abc.ABC):

    @abc.abstractmethod
    def exists(self, client_id: uuid.UUID) -> bool:
        ...


class ReviewRepository(abc.ABC):
    """Read access to a client's review history."""

    @abc.abstractmethod
    def count_by_status(self, client_id: uuid.UUID) -> ReviewCounts:
        """Current approved / rejected counts for the client's submissions."""
        ...

    @abc.abstractmethod
    def list_for_client(self, client_id: uuid.UUID) -> list[ReviewRecord]:
        """All reviews of the client's submissions, most recent first."""
        ...


class ClientSummaryRepository(abc.ABC):
    """Persist and retrieve one ClientSummary per client."""

    @abc.abstractmethod
    def get(self, client_id: uuid.UUID) -> ClientSummary | None:
        ...

    @abc.abstractmethod
    def save(self, summary: ClientSummary) -> ClientSummary:
        """Upsert keyed on client id.

        A row whose ``updated_at`` is newer than *summary*'s is left in
        place; the stored row is returned either way.
        """
        ...
