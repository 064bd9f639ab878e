"""
Starlette middleware attaching an AuthSession to every request.
"""

import inspect
import logging
from typing import Any, Generator, Optional
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from secure_route.core.config import Settings, build_hook_configuration, configure_observability
from secure_route.core.session import AuthSession
from secure_route.models.schemas import HookConfiguration

logger = logging.getLogger(__name__)

# request.state attribute holding the session
SESSION_ATTRIBUTE = "auth"
# request.state flag set once a session is attached
ATTACHED_FLAG = "secure_route_attached"


class Continuation:
    """
    The rest of the pipeline for one request.

    Calling it marks the request as continued and returns the continuation
    itself, which is awaitable. The downstream app runs at most once, on the
    first await; later awaits return the same response.
    """

    def __init__(self, call_next: RequestResponseEndpoint, request: Request):
        self._call_next = call_next
        self._request = request
        self.called = False
        self.response: Optional[Response] = None

    def __call__(self) -> "Continuation":
        self.called = True
        return self

    def __await__(self) -> Generator[Any, None, Response]:
        return self._resolve().__await__()

    @property
    def pending(self) -> bool:
        """Called but not yet awaited."""
        return self.called and self.response is None

    async def _resolve(self) -> Response:
        if self.response is None:
            self.response = await self._call_next(self._request)
        return self.response


class SecureRouteMiddleware(BaseHTTPMiddleware):
    """
    Authentication middleware.

    Per request: attach an :class:`AuthSession` to ``request.state.auth``,
    run ``init``, restore the identity (Basic-Auth, then ``retrieve``), and
    either lock the route down or continue. A second instance mounted in the
    same pipeline passes requests straight through.

    Hooks are given either as ``config=HookConfiguration(...)`` or as
    keyword options, e.g. ``app.add_middleware(SecureRouteMiddleware, lock=True)``.
    Passing ``settings`` builds the configuration from them and applies their
    logging and tracing options.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[HookConfiguration] = None,
        settings: Optional[Settings] = None,
        **options: Any
    ):
        super().__init__(app)
        if settings is not None:
            configure_observability(settings)

        if config is None and settings is not None:
            config = build_hook_configuration(settings, **options)
        elif config is None:
            config = HookConfiguration(**options)
        elif options:
            config = config.merge(options)
        self.config = config

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if getattr(request.state, ATTACHED_FLAG, False):
            return await call_next(request)

        continuation = Continuation(call_next, request)
        session = AuthSession(request, self.config, next=continuation)
        setattr(request.state, SESSION_ATTRIBUTE, session)
        setattr(request.state, ATTACHED_FLAG, True)

        await session.initialize()
        await session.populate()

        # endpoints see a session that has already continued
        session.next = None

        if self.config.lock:
            result = session.lockdown(continuation)
        else:
            result = continuation()

        if result is not continuation and inspect.isawaitable(result):
            result = await result

        # handler called next() without handing back its result
        if continuation.pending and (result is None or result is session.response):
            result = continuation
        if result is continuation:
            result = await continuation
        if result is None:
            result = session.response

        if result is session.response:
            result.headers.setdefault("content-length", str(len(result.body)))
        else:
            merge_headers(session.response, result)

        logger.debug("Request %s finished as %s", request.url.path, session.state.value)
        return result


def merge_headers(source: Response, target: Response) -> None:
    """Copy headers hooks wrote to ``source`` (cookies included) onto ``target``."""
    if source.raw_headers:
        target.raw_headers = [*target.raw_headers, *source.raw_headers]


def secure_route(
    config: Optional[HookConfiguration] = None,
    settings: Optional[Settings] = None,
    **options: Any
) -> Middleware:
    """Middleware entry for ``Starlette(middleware=[...])``."""
    return Middleware(SecureRouteMiddleware, config=config, settings=settings, **options)
