"""Timeout and cancellation-token handling for agent requests.

A request can be bounded by a timeout (seconds) and/or an ``asyncio.Event``
used as a cancellation token. When either fires, the work is cancelled and
awaited (so tool handlers see ``asyncio.CancelledError`` and can clean up)
before ``CancelledError`` is raised to the caller.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional

from ..errors import CancelledError

logger = logging.getLogger(__name__)


async def run_cancellable(
    awaitable: Awaitable[Any],
    timeout: Optional[float] = None,
    cancel: Optional[asyncio.Event] = None,
) -> Any:
    """Await ``awaitable`` unless ``timeout`` elapses or ``cancel`` is set.

    Raises:
        CancelledError: The timeout elapsed or the token was set. The
            underlying work has been cancelled and has settled.
    """
    if timeout is None and cancel is None:
        return await awaitable

    if cancel is not None and cancel.is_set():
        _discard(awaitable)
        raise CancelledError("Request cancelled by caller")
    if timeout is not None and timeout <= 0:
        _discard(awaitable)
        raise CancelledError("Request deadline already passed")

    task = asyncio.ensure_future(awaitable)
    waiters = {task}
    cancel_waiter = None
    if cancel is not None:
        cancel_waiter = asyncio.ensure_future(cancel.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        # The calling task itself was cancelled: stop the work too.
        await _cancel_and_settle(task)
        raise
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()

    if task in done:
        return task.result()

    await _cancel_and_settle(task)
    if cancel is not None and cancel.is_set():
        raise CancelledError("Request cancelled by caller")
    raise CancelledError(f"Request timed out after {timeout}s")


async def _cancel_and_settle(task: "asyncio.Future[Any]") -> None:
    task.cancel()
    results = await asyncio.gather(task, return_exceptions=True)
    outcome = results[0]
    if not isinstance(outcome, asyncio.CancelledError):
        logger.debug(f"Cancelled work settled with {outcome!r}")


def _discard(awaitable: Awaitable[Any]) -> None:
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()


def remaining(deadline: Optional[float]) -> Optional[float]:
    """Seconds left until ``deadline`` (an event-loop time), or None."""
    if deadline is None:
        return None
    return deadline - asyncio.get_running_loop().time()


def deadline_after(timeout: Optional[float]) -> Optional[float]:
    """Event-loop time ``timeout`` seconds from now, or None."""
    if timeout is None:
        return None
    return asyncio.get_running_loop().time() + timeout
