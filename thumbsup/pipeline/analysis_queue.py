"""In-process FIFO of submission ids awaiting content analysis.

Not durable: anything still queued when the process exits is recovered
by the backfill scanner, which re-enqueues submissions whose feature is
missing or stuck in ``pending``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from collections.abc import Iterator

from thumbsup.domain.common.ports import CancellationToken

logger = logging.getLogger(__name__)


class AnalysisQueue:
    """Unbounded, thread-safe FIFO with duplicate coalescing.

    An id already waiting in the queue is not appended again; once a
    consumer has taken it, it may be enqueued anew.
    """

    def __init__(self, poll_interval: float = 0.5) -> None:
        self._poll_interval = poll_interval
        self._items: deque[uuid.UUID] = deque()
        self._waiting: set[uuid.UUID] = set()
        self._not_empty = threading.Condition(threading.Lock())

    def enqueue(self, submission_id: uuid.UUID) -> bool:
        """Add *submission_id*; returns False if it was already waiting."""
        with self._not_empty:
            if submission_id in self._waiting:
                logger.debug("Submission %s already queued for analysis", submission_id)
                return False
            self._waiting.add(submission_id)
            self._items.append(submission_id)
            self._not_empty.notify()
        return True

    def try_dequeue(self, timeout: float = 0.0) -> uuid.UUID | None:
        """Pop the oldest id, waiting up to *timeout* seconds; None if empty."""
        with self._not_empty:
            if not self._items and timeout > 0:
                self._not_empty.wait(timeout)
            if not self._items:
                return None
            submission_id = self._items.popleft()
            self._waiting.discard(submission_id)
            return submission_id

    def dequeue(self, cancel: CancellationToken) -> Iterator[uuid.UUID]:
        """Yield ids in FIFO order until *cancel* fires.

        Blocks while the queue is empty, re-checking the token every
        ``poll_interval`` seconds.
        """
        while not cancel.is_cancelled():
            submission_id = self.try_dequeue(self._poll_interval)
            if submission_id is None:
                continue
            if cancel.is_cancelled():
                # Cancelled after the pop: requeue at the front
                with self._not_empty:
                    if submission_id not in self._waiting:
                        self._waiting.add(submission_id)
                        self._items.appendleft(submission_id)
                return
            yield submission_id

    def __len__(self) -> int:
        with self._not_empty:
            return len(self._items)
