"""Cooperative cancellation for blocking pipeline waits."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from serpscout.search.errors import SearchCancelled

T = TypeVar("T")


class CancellationToken:
    """Event-backed token checked between stages and inside every wait."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "search cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    def cancel_after(self, seconds: float) -> None:
        """Schedule cancellation on the running loop."""
        self.clear_deadline()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(
            seconds,
            self.cancel,
            f"search timed out after {seconds:g}s",
        )

    def clear_deadline(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SearchCancelled(self.reason)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable`, abandoning it with SearchCancelled if the token fires first."""
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()

        try:
            await task
        except asyncio.CancelledError:
            pass
        raise SearchCancelled(self.reason)

    async def sleep(self, seconds: float) -> None:
        """Sleep for `seconds`, waking early with SearchCancelled on cancellation."""
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise SearchCancelled(self.reason)
