"""
Notekeeper Backend: Request Context & Deadline Propagation
===========================================================

What:  A small immutable value carrying the deadline (and request id) of the
       request on whose behalf a store operation runs.
How:   The HTTP layer builds one RequestContext per request. Every NoteStore
       method receives it and runs its work through `run_with_deadline()`,
       which bounds the awaitable by the time remaining and cancels it when
       the deadline passes.
Who:   Built by `get_request_context` (routes/dependencies.py); consumed by
       both store backends.

Cancellation semantics:
    asyncio cancellation propagates into the awaited coroutine. For the SQL
    store this interrupts the in-flight driver call and the surrounding
    transaction rolls back, so a timed-out write is never left half-applied.
    For the in-memory store the deadline bounds lock acquisition; once the
    lock is held the operation has no further suspension points.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

from notekeeper.exceptions import StoreTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RequestContext:
    """
    Deadline-bearing execution context passed into every store call.

    Attributes:
        deadline:    Absolute `time.monotonic()` value after which work must
                     stop, or None for no deadline.
        request_id:  Correlation id used in log lines ("" when unknown).
    """

    deadline: Optional[float] = None
    request_id: str = ""

    @classmethod
    def with_timeout(cls, seconds: Optional[float], request_id: str = "") -> "RequestContext":
        """Build a context whose deadline is `seconds` from now (None = unbounded)."""
        if seconds is None:
            return cls(deadline=None, request_id=request_id)
        return cls(deadline=time.monotonic() + seconds, request_id=request_id)

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, clamped at zero. None if unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline


async def run_with_deadline(
    ctx: RequestContext,
    awaitable: Awaitable[T],
    operation: str,
) -> T:
    """
    Await `awaitable`, bounded by the deadline carried in `ctx`.

    Args:
        ctx:        The caller's request context.
        awaitable:  The store work to run (a coroutine object).
        operation:  Short name used in the timeout error and logs ("note get").

    Returns:
        Whatever the awaitable returns.

    Raises:
        StoreTimeoutError: the deadline had already passed (the awaitable is
            closed without running) or passed while waiting (the awaitable is
            cancelled).
    """
    if ctx.expired:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        logger.warning("[%s] Deadline already expired before %s", ctx.request_id, operation)
        raise StoreTimeoutError(operation=operation, timeout=0.0)

    timeout = ctx.remaining()
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "[%s] %s exceeded its deadline (%.3fs budget)",
            ctx.request_id,
            operation,
            timeout or 0.0,
        )
        raise StoreTimeoutError(operation=operation, timeout=timeout)
