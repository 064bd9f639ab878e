"""
Pydantic models for secure-route.
"""

from typing import Any, Callable, Dict, Literal, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ImportString


# Hooks may be passed as callables or as "package.module.attr" import strings
Hook = Optional[ImportString[Callable[..., Any]]]

# Positional arguments each hook receives, excluding a trailing completion callback
HOOK_ARGUMENTS: Dict[str, int] = {
    "init": 1,
    "authorize": 1,
    "login": 2,
    "signin": 2,
    "logout": 2,
    "signout": 2,
    "clear": 2,
    "save": 2,
    "retrieve": 2,
    "logged_in": 1,
    "unauthorized": 3,
}

# Hooks called synchronously and never through the invocation adapter
SYNC_HOOKS = frozenset({"logged_in", "unauthorized"})


class HookConfiguration(BaseModel):
    """
    Immutable set of integrator hooks and flags.

    Per-call overrides go through :meth:`merge`, which returns a new
    configuration and leaves this one untouched.
    """
    init: Hook = None
    authorize: Hook = None
    login: Hook = None
    logout: Hook = None
    logged_in: Hook = Field(default=None, alias="loggedIn")
    unauthorized: Hook = None
    signin: Hook = None
    signout: Hook = None
    save: Hook = None
    clear: Hook = None
    retrieve: Hook = None
    lock: bool = False
    basic: bool = True

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    @classmethod
    def field_name(cls, key: str) -> str:
        """Map an option name (``loggedIn`` or ``logged_in``) to its field name."""
        for name, field in cls.model_fields.items():
            if key == name or key == field.alias:
                return name
        return key

    def get(self, name: str) -> Optional[Callable[..., Any]]:
        """Return the hook configured under ``name``, or None."""
        return getattr(self, self.field_name(name), None)

    def configured_hooks(self) -> Dict[str, Callable[..., Any]]:
        """Hooks that are set, keyed by field name."""
        return {
            name: getattr(self, name)
            for name in HOOK_ARGUMENTS
            if getattr(self, name) is not None
        }

    def merge(self, overrides: Optional[Mapping[str, Any]] = None) -> "HookConfiguration":
        """Return a new configuration with ``overrides`` applied over this one."""
        if not overrides:
            return self

        values = {name: getattr(self, name) for name in type(self).model_fields}
        for key, value in overrides.items():
            values[self.field_name(key)] = value

        return type(self)(**values)


class HookReport(BaseModel):
    """How the invocation adapter will call one configured hook."""
    name: str
    configured: bool
    target: Optional[str] = None
    arguments: int
    declared: Optional[int] = None
    style: Literal["callback", "direct", "sync", "unset"] = "unset"
