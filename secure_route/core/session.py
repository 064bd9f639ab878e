"""
Per-request authentication session.
"""

from contextvars import ContextVar
from enum import Enum
from typing import Any, Callable, Mapping, Optional
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from secure_route.adapters.basic import extract_basic_credentials
from secure_route.core.callbackify import callbackify
from secure_route.core.errors import ConfigurationError, HookExecutionError, SecureRouteError
from secure_route.core.invocation import classify_hook, invoke
from secure_route.models.schemas import HookConfiguration
from secure_route.observability.logging import AuditLogger
from secure_route.observability.metrics import MetricsCollector, get_metrics_collector
from secure_route.observability.tracing import TracingContext

Continuation = Callable[[], Any]

# Session whose hook is currently running
_current_session: ContextVar[Optional["AuthSession"]] = ContextVar("secure_route_session", default=None)


def current_session() -> Optional["AuthSession"]:
    """
    Return the session whose hook is running, or None outside a hook.

    Hooks called with bare arguments (``authorize``, ``login``) use this to
    reach the request and the response they may write cookies to.
    """
    return _current_session.get()


class AuthState(str, Enum):
    """Authentication state of a session."""
    ANONYMOUS = "anonymous"
    AUTHORIZED = "authorized"


def new_sub_response() -> Response:
    """Empty response hooks can write cookies and headers to."""
    response = Response()
    del response.headers["content-length"]
    return response


class AuthSession:
    """
    Authentication state of one request.

    The session starts anonymous. ``authorize`` and ``set_signed_in_user``
    replace ``user`` once their hook has completed, ``logout`` clears it.
    Every async operation can be awaited or given a trailing
    ``callback(error, value)``.
    """

    def __init__(
        self,
        request: Request,
        config: HookConfiguration,
        next: Optional[Continuation] = None,
        metrics: Optional[MetricsCollector] = None,
        audit: Optional[AuditLogger] = None,
        tracing: Optional[TracingContext] = None
    ):
        self.request = request
        self.response = new_sub_response()
        self.config = config
        self.next = next
        self.user: Any = None
        self.pending_user: Any = None
        self.metrics = metrics or get_metrics_collector()
        self.audit = audit or AuditLogger()
        self.tracing = tracing or TracingContext()

    def __repr__(self) -> str:
        return f"<AuthSession {self.state.value} path={self.request.url.path!r}>"

    @property
    def state(self) -> AuthState:
        return AuthState.ANONYMOUS if self.user is None else AuthState.AUTHORIZED

    @property
    def client_ip(self) -> Optional[str]:
        return self.request.client.host if self.request.client else None

    async def call_hook(self, name: str, *args: Any) -> Any:
        """
        Invoke the hook configured under ``name`` with ``args``.

        Raises:
            ConfigurationError: If no such hook is configured
            HookExecutionError: If the hook raises or its result fails
        """
        hook = self.config.get(name)
        if hook is None:
            raise ConfigurationError.missing_hook(name)

        style = classify_hook(hook, len(args))
        token = _current_session.set(self)
        try:
            with self.tracing.trace_hook(name, style.value), self.metrics.time_hook(name):
                try:
                    return await invoke(hook, *args)
                except (SecureRouteError, HTTPException):
                    raise
                except Exception as e:
                    raise HookExecutionError.from_exception(name, e) from e
        finally:
            _current_session.reset(token)

    def _credential_hook(self) -> str:
        if self.config.login is None and self.config.signin is not None:
            return "signin"
        return "login"

    # Lifecycle steps run by the middleware

    async def initialize(self) -> None:
        """Run the ``init`` hook, if configured."""
        if self.config.init is not None:
            await self.call_hook("init", self)

    async def populate(self) -> None:
        """Restore the identity from Basic-Auth credentials, then from ``retrieve``."""
        if self.config.basic:
            credentials = await extract_basic_credentials(self.request)
            if credentials is not None:
                await self._basic_signin(credentials.username, credentials.password)

        if self.user is None and self.config.retrieve is not None:
            self.user = await self.call_hook("retrieve", self.request, self.response)

    async def _basic_signin(self, username: str, password: str) -> None:
        name = self._credential_hook()
        if self.config.get(name) is None:
            return

        data = await self.call_hook(name, username, password)
        success = data is not None
        self.metrics.record_auth_attempt("basic", success)
        self.audit.log_login_attempt(
            username,
            success,
            client_ip=self.client_ip,
            method="basic",
            reason=None if success else "rejected"
        )

        # Basic-Auth is a direct verification, no authorize chain
        if success:
            self.user = data

    # Session operations

    @callbackify
    async def authorize(self, data: Any) -> Any:
        """Record ``data`` as the signed-in identity through the ``authorize`` hook."""
        try:
            result = await self.call_hook("authorize", data)
        except SecureRouteError:
            self.metrics.record_auth_attempt("authorize", False)
            raise

        self.user = data
        self.metrics.record_auth_attempt("authorize", True)
        self.audit.log_authorize(data, client_ip=self.client_ip)
        return result

    @callbackify
    async def login(self, username: str, password: str) -> Any:
        """
        Verify credentials and, when they resolve to an identity, authorize it.

        Returns:
            The identity produced by the credential hook, or None
        """
        try:
            data = await self.call_hook(self._credential_hook(), username, password)
        except SecureRouteError as e:
            self.metrics.record_auth_attempt("login", False)
            self.audit.log_login_attempt(username, False, client_ip=self.client_ip, reason=str(e))
            raise

        if data is None:
            self.metrics.record_auth_attempt("login", False)
            self.audit.log_login_attempt(username, False, client_ip=self.client_ip, reason="rejected")
            return None

        self.metrics.record_auth_attempt("login", True)
        self.audit.log_login_attempt(username, True, client_ip=self.client_ip)

        await self.authorize(data)
        return data

    signin = login

    @callbackify
    async def logout(self) -> Any:
        """
        Run the sign-out hook, if any, and drop the identity.

        Returns:
            The identity held before signing out
        """
        if self.config.logout is not None:
            await self.call_hook("logout", self.request, self.response)
        elif self.config.signout is not None:
            await self.call_hook("signout", self.request, self.response)
        elif self.config.clear is not None:
            await self.call_hook("clear", self.request, self.response)

        user, self.user = self.user, None
        self.audit.log_logout(user, client_ip=self.client_ip)
        return user

    signout = logout

    @callbackify
    async def set_signed_in_user(self, data: Any) -> None:
        """Persist ``data`` through the ``save`` hook, then make it the identity."""
        if self.config.save is not None:
            self.pending_user = data
            try:
                await self.call_hook("save", self.request, self.response)
            finally:
                self.pending_user = None

        self.user = data

    def logged_in(self) -> bool:
        """True when signed in; a ``loggedIn`` hook overrides the check."""
        if self.config.logged_in is not None:
            return bool(self.config.logged_in(self))
        return self.user is not None

    def lockdown(
        self,
        next: Optional[Continuation] = None,
        overrides: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """
        Continue only when signed in.

        Returns whatever ``next()`` returns when signed in, otherwise the
        unauthorized response (possibly awaitable). ``overrides`` replace
        configuration options for this check only.

        Inside an endpoint the request has already continued, so there is no
        continuation: signed-in sessions get None and the endpoint goes on.
        """
        if isinstance(next, Mapping) and overrides is None:
            next, overrides = None, next
        if next is None:
            next = self.next

        if self.logged_in():
            self.metrics.record_lockdown(True)
            return next() if next is not None else None

        self.metrics.record_lockdown(False)
        config = self.config.merge(overrides)
        self.audit.log_lockdown_denied(
            self.request.url.path,
            client_ip=self.client_ip,
            handler=getattr(config.unauthorized, "__name__", None)
        )
        return self._unauthorized(config, next)

    def unauthorized(self) -> Any:
        """Build the unauthorized response for this request."""
        return self._unauthorized(self.config, self.next)

    def _unauthorized(self, config: HookConfiguration, next: Optional[Continuation]) -> Any:
        if config.unauthorized is None:
            return PlainTextResponse("Unauthorized", status_code=401)

        # handlers that only write headers still answer 401
        self.response.status_code = 401
        token = _current_session.set(self)
        try:
            result = config.unauthorized(self.request, self.response, next)
        finally:
            _current_session.reset(token)
        return self.response if result is None else result
