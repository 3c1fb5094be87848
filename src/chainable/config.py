"""Configuration: frozen settings for chain composition and execution.

Resolution order is defaults < environment (``CHAINABLE_*``, including a
project ``.env``) < explicit overrides. The resolved ``Config`` is frozen and
installed per context, so concurrent chains in different tasks can run under
different settings.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
import contextlib
import contextvars
from dataclasses import dataclass, fields, replace
import os
from typing import Any, Literal, get_args

from dotenv import load_dotenv

from chainable.errors import ConfigurationError

DoubleCompletionPolicy = Literal["raise", "warn", "ignore"]

_ENV_PREFIX = "CHAINABLE_"
_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})

_dotenv_loaded = False


@dataclass(frozen=True)
class Config:
    """Immutable settings consulted while building and running chains.

    Example:
        with config_scope(strict_types=False):
            head.append(untyped_step)
    """

    #: Reject ``append`` when adjacent Output/Input descriptors disagree.
    strict_types: bool = True
    #: Route exceptions raised by ``main`` to the error handler as failures.
    capture_exceptions: bool = True
    #: What a ``Completion`` does when called a second time.
    on_double_completion: DoubleCompletionPolicy = "raise"

    def __post_init__(self) -> None:
        """Validate field values."""
        for name in ("strict_types", "capture_exceptions"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(
                    f"{name} must be a bool, got {getattr(self, name)!r}",
                )
        allowed = get_args(DoubleCompletionPolicy)
        if self.on_double_completion not in allowed:
            raise ConfigurationError(
                f"Unknown on_double_completion policy: {self.on_double_completion!r}",
                hint=f"Supported policies: {', '.join(repr(p) for p in allowed)}",
            )


_active: contextvars.ContextVar[Config | None] = contextvars.ContextVar(
    "chainable_config", default=None
)


def _coerce_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(
        f"Invalid boolean for {key}: {raw!r}",
        hint="Use one of 1/0, true/false, yes/no, on/off.",
    )


def load_env() -> dict[str, Any]:
    """Read ``CHAINABLE_*`` variables into a mapping of Config field values."""
    global _dotenv_loaded
    if not _dotenv_loaded:
        load_dotenv()
        _dotenv_loaded = True

    values: dict[str, Any] = {}
    for f in fields(Config):
        key = f"{_ENV_PREFIX}{f.name.upper()}"
        raw = os.environ.get(key)
        if raw is None:
            continue
        if f.type in ("bool", bool):
            values[f.name] = _coerce_bool(key, raw)
        else:
            values[f.name] = raw.strip().lower()
    return values


def resolve_config(overrides: Mapping[str, Any] | None = None) -> Config:
    """Build a Config from defaults, environment, and ``overrides``.

    Raises:
        ConfigurationError: If an override names an unknown field or a value
            fails validation.
    """
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(overrides or {}) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration field(s): {', '.join(unknown)}",
            hint=f"Known fields: {', '.join(sorted(known))}",
        )
    return Config(**{**load_env(), **(overrides or {})})


def current_config() -> Config:
    """Return the Config installed by ``config_scope``, else resolve from env."""
    cfg = _active.get()
    return cfg if cfg is not None else resolve_config()


@contextlib.contextmanager
def config_scope(config: Config | None = None, **overrides: Any) -> Iterator[Config]:
    """Temporarily install a Config for the current context.

    Overrides are applied on top of ``config`` when given, otherwise on top
    of the currently active config.
    """
    base = config if config is not None else current_config()
    if overrides:
        known = {f.name for f in fields(Config)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration field(s): {', '.join(unknown)}",
            )
        base = replace(base, **overrides)
    token = _active.set(base)
    try:
        yield base
    finally:
        _active.reset(token)


__all__ = [
    "Config",
    "DoubleCompletionPolicy",
    "config_scope",
    "current_config",
    "load_env",
    "resolve_config",
]
