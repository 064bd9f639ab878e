"""
Hook invocation for secure-route.

Hooks may be written three ways and are called through one entry point:

* direct: ``def login(username, password): return user``
* deferred: ``async def login(username, password): return user``
* callback: ``def login(username, password, callback): callback(None, user)``

The calling convention is sniffed from the hook's signature. A hook that
declares exactly one more positional parameter than it is given is
callback-style; anything else is called directly. Hooks wrapped with
:func:`callback_hook` or :func:`direct_hook` skip the sniffing.
"""

import asyncio
import functools
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from secure_route.core.errors import HookExecutionError

logger = logging.getLogger(__name__)

_STYLE_ATTRIBUTE = "__hook_style__"

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class HookStyle(str, Enum):
    """Calling convention of a hook."""
    CALLBACK = "callback"
    DIRECT = "direct"


def _tag(fn: Callable[..., Any], style: HookStyle) -> Callable[..., Any]:
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        return fn(*args, **kwargs)

    setattr(wrapper, _STYLE_ATTRIBUTE, style)
    return wrapper


def callback_hook(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Mark ``fn`` as taking a trailing ``callback(error, value)`` argument."""
    return _tag(fn, HookStyle.CALLBACK)


def direct_hook(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Mark ``fn`` as returning its result (or an awaitable) directly."""
    return _tag(fn, HookStyle.DIRECT)


def declared_parameters(fn: Callable[..., Any]) -> Optional[int]:
    """
    Count the named positional parameters of ``fn``.

    Returns None when the signature cannot be inspected (some builtins).
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None

    return sum(1 for p in signature.parameters.values() if p.kind in _POSITIONAL)


def classify_hook(fn: Callable[..., Any], argc: int) -> HookStyle:
    """Decide how ``fn`` will be called when given ``argc`` arguments."""
    style = getattr(fn, _STYLE_ATTRIBUTE, None)
    if style is not None:
        return style

    if declared_parameters(fn) == argc + 1:
        return HookStyle.CALLBACK
    return HookStyle.DIRECT


async def invoke(hook: Callable[..., Any], *args: Any) -> Any:
    """
    Call ``hook`` with ``args`` and wait for its result, whatever its convention.

    Errors raised synchronously by the hook surface when the returned
    coroutine is awaited, never at call time.
    """
    if classify_hook(hook, len(args)) is HookStyle.CALLBACK:
        return await _invoke_with_callback(hook, args)

    result = hook(*args)
    if inspect.isawaitable(result):
        return await result
    return result


async def _invoke_with_callback(hook: Callable[..., Any], args: Tuple[Any, ...]) -> Any:
    loop = asyncio.get_running_loop()
    future = loop.create_future()
    name = getattr(hook, "__name__", repr(hook))

    def settle(error: Any, value: Any) -> None:
        if future.done():
            logger.debug("Ignoring repeated completion of hook %s", name)
            return

        if error is None:
            future.set_result(value)
        elif isinstance(error, BaseException):
            future.set_exception(error)
        else:
            future.set_exception(HookExecutionError(str(error), hook=name))

    def callback(error: Any = None, value: Any = None) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            settle(error, value)
        else:
            # completed from a worker thread
            loop.call_soon_threadsafe(settle, error, value)

    try:
        result = hook(*args, callback)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        settle(exc, None)

    return await future

