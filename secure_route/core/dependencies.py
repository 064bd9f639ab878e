"""
FastAPI dependency injection for secure-route.
"""

from typing import Any, Optional
from fastapi import Depends, HTTPException, Request

from secure_route.core.middleware import SESSION_ATTRIBUTE
from secure_route.core.session import AuthSession


def get_session(request: Request) -> AuthSession:
    """Get the authentication session attached by SecureRouteMiddleware."""
    session = getattr(request.state, SESSION_ATTRIBUTE, None)
    if session is None:
        raise HTTPException(
            status_code=500,
            detail="SecureRouteMiddleware not installed"
        )
    return session


def get_current_user(session: AuthSession = Depends(get_session)) -> Optional[Any]:
    """Get the signed-in identity, or None for anonymous requests."""
    return session.user


def require_login(realm: Optional[str] = None):
    """
    Create a dependency rejecting anonymous requests with a 401.

    Args:
        realm: Basic-Auth realm to announce in ``WWW-Authenticate``

    Returns:
        Dependency function resolving to the signed-in identity
    """
    async def login_checker(session: AuthSession = Depends(get_session)) -> Any:
        if session.logged_in():
            session.metrics.record_lockdown(True)
            return session.user

        session.metrics.record_lockdown(False)
        session.audit.log_lockdown_denied(session.request.url.path, client_ip=session.client_ip)

        headers = None
        if session.config.basic:
            challenge = f'Basic realm="{realm}"' if realm else "Basic"
            headers = {"WWW-Authenticate": challenge}

        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers=headers
        )

    return login_checker


# Common login dependency
login_required = require_login()
