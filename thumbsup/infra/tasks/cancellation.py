"""threading.Event adapter of the CancellationToken port."""

from __future__ import annotations

import threading

from thumbsup.domain.common.ports import CancellationToken


class EventCancellationToken(CancellationToken):
    """Process-lifetime token shared by every background thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(max(timeout, 0.0))
