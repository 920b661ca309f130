"""
Cooperative cancellation for pipeline runs.

A CancellationToken is created by the caller, passed to the orchestrator,
and threaded down to every Agent call. Agents check it before each call and
race the in-flight provider request against it, so cancel() aborts the
outstanding HTTP request instead of waiting for it to finish.

cancel() must be called from the event loop thread; use
loop.call_soon_threadsafe(token.cancel) from other threads.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from resume_tailor.common.errors import PipelineCancelled

T = TypeVar("T")


class CancellationToken:
    """Signals that a pipeline run should stop as soon as possible."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise PipelineCancelled if cancel() has been called."""
        if self.cancelled:
            raise PipelineCancelled(self.reason or "cancelled")

    async def wait(self) -> None:
        await self._event.wait()


async def run_cancellable(awaitable: Awaitable[T], token: Optional[CancellationToken] = None) -> T:
    """
    Await a provider call, aborting it if the token fires first.

    Raises:
        PipelineCancelled: If the token was cancelled before or during the call
    """
    if token is None:
        return await awaitable

    try:
        token.raise_if_cancelled()
    except PipelineCancelled:
        # Close the never-started coroutine to avoid a "never awaited" warning
        close = getattr(awaitable, "close", None)
        if close:
            close()
        raise

    call = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not call.done():
            call.cancel()

    if call in done:
        return call.result()

    # Token fired first: let the cancelled request unwind before reporting
    await asyncio.gather(call, return_exceptions=True)
    raise PipelineCancelled(token.reason or "cancelled")
