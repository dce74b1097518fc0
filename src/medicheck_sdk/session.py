"""Delayed session-expiry signalling.

When a session cannot be refreshed the surrounding application should send
the user back to the login screen, after a short pause so that the error
message can be shown first. The SDK renders nothing itself; it only calls
back.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from .telemetry import get_logger


class SessionExpiryNotifier:
    """Schedules the application's logout/redirect callback."""

    def __init__(self, callback: Callable[[], Any], delay: float = 2.0) -> None:
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._logger = get_logger()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self) -> None:
        """Signal an expired session; repeated signals coalesce."""
        if self._handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._logger.info("Session expired, notifying application", delay=self._delay)
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Drop a signal that has not fired yet."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        result = self._callback()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            task.add_done_callback(self._report)

    def _report(self, task: asyncio.Future[Any]) -> None:
        if not task.cancelled() and task.exception() is not None:
            self._logger.error("Session-expired callback failed", error=str(task.exception()))
