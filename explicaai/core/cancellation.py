"""Cancellation Token — cooperative cancel signal shared by caller and orchestrator.

Invariants:
    - Once cancelled, a token stays cancelled
    - cancel() is idempotent and safe to call before the work starts
    - The token never interrupts work by itself; holders check or await it
"""

import asyncio

from explicaai.core.errors import ErrorContext, ExplanationCancelled


class CancelToken:
    """Thin wrapper over asyncio.Event with a request_id for error context."""

    def __init__(self, request_id: str | None = None):
        self.request_id = request_id
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExplanationCancelled(ErrorContext(request_id=self.request_id))
