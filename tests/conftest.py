"""
Shared fixtures for secure-route tests.
"""

import base64
import pytest
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient
from starlette.requests import Request

from secure_route.core.dependencies import get_session
from secure_route.core.middleware import SecureRouteMiddleware
from secure_route.core.session import AuthSession
from secure_route.models.schemas import HookConfiguration


def basic_header(username: str, password: str) -> dict:
    """Authorization header for Basic-Auth credentials."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def build_request(headers: dict = None, path: str = "/") -> Request:
    """Create a bare Starlette request."""
    raw_headers = [
        (key.lower().encode("latin-1"), value.encode("latin-1"))
        for key, value in (headers or {}).items()
    ]
    return Request({
        "type": "http",
        "method": "GET",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": raw_headers,
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    })


@pytest.fixture
def make_session():
    """Factory for sessions over a bare request."""
    def factory(headers: dict = None, next=None, **hooks) -> AuthSession:
        return AuthSession(build_request(headers), HookConfiguration(**hooks), next=next)
    return factory


@pytest.fixture
def create_app():
    """Factory for a FastAPI app with the middleware and a probe route."""
    def factory(**options) -> FastAPI:
        app = FastAPI()
        app.add_middleware(SecureRouteMiddleware, **options)

        @app.get("/whoami")
        async def whoami(session: AuthSession = Depends(get_session)):
            return {"user": session.user, "logged_in": session.logged_in()}

        return app
    return factory


@pytest.fixture
def client_for():
    """Factory for a test client around an app."""
    def factory(app: FastAPI, raise_server_exceptions: bool = True) -> TestClient:
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)
    return factory
