"""Cancellation signal shared between the caller, the aggregator and the downloader."""
from __future__ import annotations

import threading
import time
from typing import Optional

from .exceptions import ExtractionCancelled


class CancelToken:
    """A cancellation flag with an optional deadline.

    The caller owns the token. ``cancel()`` may be called from any thread;
    extraction code polls ``raise_if_cancelled()`` at its blocking points.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExtractionCancelled("Extraction was cancelled")
        if self.expired:
            raise ExtractionCancelled("Extraction deadline exceeded")
