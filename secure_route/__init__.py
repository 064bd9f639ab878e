"""
secure-route: per-request authentication sessions for Starlette and FastAPI.
"""

__version__ = "0.1.0"

from secure_route.core.callbackify import callbackify
from secure_route.core.dependencies import get_current_user, get_session, login_required, require_login
from secure_route.core.errors import ConfigurationError, HookExecutionError, SecureRouteError
from secure_route.core.invocation import HookStyle, callback_hook, classify_hook, direct_hook, invoke
from secure_route.core.middleware import SecureRouteMiddleware, secure_route
from secure_route.core.session import AuthSession, AuthState, current_session
from secure_route.models.schemas import HookConfiguration

__all__ = [
    "AuthSession",
    "AuthState",
    "ConfigurationError",
    "HookConfiguration",
    "HookExecutionError",
    "HookStyle",
    "SecureRouteError",
    "SecureRouteMiddleware",
    "callback_hook",
    "callbackify",
    "classify_hook",
    "current_session",
    "direct_hook",
    "get_current_user",
    "get_session",
    "invoke",
    "login_required",
    "require_login",
    "secure_route",
]
