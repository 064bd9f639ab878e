"""
Expose coroutine functions to both await-style and callback-style callers.
"""

import asyncio
import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, Set

logger = logging.getLogger(__name__)

# Strong references to callback-driven tasks until they finish
_pending: Set[asyncio.Task] = set()


def callbackify(operation: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """
    Adapt ``operation`` so a trailing callable argument becomes a completion callback.

    ``f(*args)`` returns the awaitable from ``operation(*args)``.
    ``f(*args, callback)`` schedules ``operation(*args)`` and calls
    ``callback(error)`` or ``callback(None, value)`` exactly once when it settles.
    The returned task resolves to the value, or to None after a failure that
    was already delivered to the callback.
    """
    @functools.wraps(operation)
    def wrapper(*args: Any) -> Awaitable[Any]:
        if not args or not callable(args[-1]):
            return operation(*args)

        *args, callback = args
        task = asyncio.ensure_future(_settle(operation, args, callback))
        _pending.add(task)
        task.add_done_callback(_pending.discard)
        return task

    return wrapper


async def _settle(operation: Callable[..., Awaitable[Any]], args, callback: Callable[..., Any]) -> Any:
    try:
        value = await operation(*args)
    except Exception as exc:
        await _deliver(callback, exc)
        return None

    await _deliver(callback, None, value)
    return value


async def _deliver(callback: Callable[..., Any], *outcome: Any) -> None:
    try:
        result = callback(*outcome)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Completion callback %r raised", callback)
