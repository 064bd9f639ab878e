"""
Exceptions raised by secure-route.
"""

from typing import Optional


class SecureRouteError(Exception):
    """Base class for all secure-route errors."""


class ConfigurationError(SecureRouteError):
    """An operation needs a hook that is not configured, or the configuration is invalid."""

    @classmethod
    def missing_hook(cls, name: str) -> "ConfigurationError":
        return cls(f"Missing {name} function in secure-route options.")


class HookExecutionError(SecureRouteError):
    """A configured hook raised, or the awaitable it returned failed."""

    def __init__(self, message: str, hook: Optional[str] = None, original: Optional[BaseException] = None):
        super().__init__(message)
        self.hook = hook
        self.original = original

    @classmethod
    def from_exception(cls, hook: str, exc: BaseException) -> "HookExecutionError":
        error = cls(f"Hook '{hook}' failed: {exc}", hook=hook, original=exc)
        error.__cause__ = exc
        return error
