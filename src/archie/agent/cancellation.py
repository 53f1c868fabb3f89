"""Cooperative cancellation for one in-flight user turn."""

import asyncio
import logging
from typing import (
    Awaitable,
    TypeVar,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANCELLED_MESSAGE = "Operation cancelled by the user"


class OperationCancelled(Exception):
    """Raised by an awaited call that observed a signalled token."""

    def __init__(self, message: str = CANCELLED_MESSAGE):
        super().__init__(message)


class CancellationToken:
    """
    Flag that is set once and checked at defined points.

    The loop checks :attr:`cancelled` at its checkpoints; :meth:`run` additionally lets a model call
    be abandoned as soon as the token fires.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """True once :meth:`cancel` has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation (idempotent)."""
        if not self._event.is_set():
            logger.info("Cancellation requested")
        self._event.set()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await *awaitable*, abandoning it if the token fires first.

        Raises
        ------
        OperationCancelled
            If the token was set before or while *awaitable* ran.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            task.cancel()
            raise
        finally:
            waiter.cancel()
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            raise OperationCancelled()
        return task.result()
