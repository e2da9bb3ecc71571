"""Delay primitives that honour a context-local time warp.

A member configured with ``to_time_warp`` runs its original body inside
``warp(milliseconds)``. Any delay the body requests through ``sleep``,
``async_sleep`` or ``call_later`` is shortened by the active warp. The warp
lives in a ``ContextVar``, so it is scoped to the current thread or asyncio
task and never leaks into concurrently running calls.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

logger = logging.getLogger(__name__)

_warp_seconds: ContextVar[float] = ContextVar("understudy_warp_seconds", default=0.0)


def current_warp() -> float:
    """Return the active warp in seconds (0.0 when none is active)."""
    return _warp_seconds.get()


def effective_delay(seconds: float) -> float:
    """Apply the active warp to a requested delay, never going below zero."""
    return max(0.0, seconds - _warp_seconds.get())


@contextmanager
def warp(milliseconds: float) -> Iterator[float]:
    """Shorten every delay scheduled inside the block by ``milliseconds``.

    Nested warps accumulate.

    Args:
        milliseconds: Amount to subtract from each requested delay

    Yields:
        The total warp in seconds now in effect
    """
    total = _warp_seconds.get() + milliseconds / 1000.0
    token = _warp_seconds.set(total)
    logger.debug(f"Time warp of {total:.3f}s active")
    try:
        yield total
    finally:
        _warp_seconds.reset(token)


def sleep(seconds: float) -> None:
    """Warp-aware ``time.sleep``."""
    time.sleep(effective_delay(seconds))


async def async_sleep(seconds: float, result: Any = None) -> Any:
    """Warp-aware ``asyncio.sleep``."""
    return await asyncio.sleep(effective_delay(seconds), result)


def call_later(
    seconds: float, callback: Callable[..., Any], *args: Any, **kwargs: Any
) -> threading.Timer:
    """Run ``callback`` on a timer thread after a warp-aware delay.

    The warp is applied when the timer is scheduled, not when it fires.

    Returns:
        The started timer, which the caller may cancel
    """
    timer = threading.Timer(effective_delay(seconds), callback, args, kwargs)
    timer.daemon = True
    timer.start()
    return timer
