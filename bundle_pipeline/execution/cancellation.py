"""
Cancellation Token
==================
Cooperative cancellation for one pipeline invocation.

Checked before every retry sleep, stage transition and batch. Sleeps taken
through the token wake up early when it fires. A chunk that was already
handed to the relay is never re-submitted after cancellation.
"""

import asyncio
from typing import Optional


class CancellationToken:
    """
    Usage:
        token = CancellationToken()
        task = asyncio.create_task(pipeline.execute_create(..., cancel=token))
        token.cancel("user aborted")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason or "Cancelled"

    def cancel(self, reason: str = "Cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    async def sleep(self, delay: float) -> bool:
        """
        Sleep for `delay` seconds unless cancelled first.

        Returns:
            True if the full delay elapsed, False if cancelled.
        """
        if self.cancelled:
            return False
        if delay <= 0:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False


class NeverCancelled(CancellationToken):
    """Token used when the caller does not supply one."""

    def cancel(self, reason: str = "Cancelled") -> None:
        raise RuntimeError("NeverCancelled cannot be cancelled")

    async def sleep(self, delay: float) -> bool:
        if delay > 0:
            await asyncio.sleep(delay)
        return True
