"""
Call contexts carrying cancellation and an optional deadline.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .errors import Cancelled, DeadlineExceeded

__all__ = ["Context", "background", "with_timeout"]


class Context:
    """
    Cancellation handle shared between a caller and an in-flight call.

    ``cancel()`` may be called from any thread.
    """

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._cancelled = threading.Event()
        self._deadline = None if timeout is None else clock() + timeout

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def done(self) -> bool:
        return self.cancelled or self.remaining() == 0.0

    def check(self) -> None:
        if self.cancelled:
            raise Cancelled("context canceled")
        if self.remaining() == 0.0:
            raise DeadlineExceeded("context deadline exceeded")


def background() -> Context:
    return Context()


def with_timeout(seconds: float) -> Context:
    return Context(timeout=seconds)
