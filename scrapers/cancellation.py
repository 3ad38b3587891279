"""Cooperative cancellation checked at every scraping suspension point."""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from .errors import ScrapeCancelledError

__all__ = ["CancelToken"]


class CancelToken:
    """
    Abort signal plus optional deadline.

    Sessions call ``raise_if_cancelled`` before and after each delay and
    browser wait; the resulting ``ScrapeCancelledError`` unwinds through the
    session's browser scope so resources are released normally.
    """

    def __init__(self, timeout_s: Optional[float] = None) -> None:
        self._event = asyncio.Event()
        self.deadline: Optional[float] = (
            time.monotonic() + timeout_s if timeout_s and timeout_s > 0 else None
        )

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining_s(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def raise_if_cancelled(self, where: str = "") -> None:
        if self.cancelled:
            reason = "deadline exceeded" if not self._event.is_set() else "cancelled"
            raise ScrapeCancelledError(f"Scrape {reason}" + (f" at {where}" if where else ""))
