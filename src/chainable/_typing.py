"""Runtime type descriptors for commands (internal).

Type checkers enforce Output/Input agreement through the generic parameters
of ``Command``. At runtime each command class also carries ``input_type`` and
``output_type`` descriptors so ``append`` can fail fast on a mismatch. Open
descriptors (``Any``, type variables, forward references) always match.
"""

from __future__ import annotations

import inspect
import logging
import types
import typing
from typing import Any, ForwardRef, TypeVar, get_args, get_origin

from chainable.errors import ChainCompositionError
from chainable.result import Failure, Result, Success
from chainable.types import EmptyCommandData

if typing.TYPE_CHECKING:
    from chainable.command import Command
    from chainable.config import Config

log = logging.getLogger(__name__)

_UNIONS = (typing.Union, types.UnionType)


def resolve_class_descriptors(cls: type, root: type) -> tuple[Any, Any] | None:
    """Return ``(input_type, output_type)`` declared by ``cls``'s generic bases.

    Walks only the bases written on ``cls`` itself. Parameters of a generic
    parent are substituted with the arguments given here, so
    ``class Reader(Base[str, bytes])`` resolves through ``Base``'s own
    descriptors. Returns None when no parameterized command base is found.
    """
    for base in cls.__dict__.get("__orig_bases__", ()):
        origin = get_origin(base)
        if not (isinstance(origin, type) and issubclass(origin, root)):
            continue
        params = getattr(origin, "__parameters__", ())
        substitution = dict(zip(params, get_args(base), strict=False))
        parent_in = getattr(origin, "input_type", Any)
        parent_out = getattr(origin, "output_type", Any)
        return (
            substitution.get(parent_in, parent_in),
            substitution.get(parent_out, parent_out),
        )
    return None


def is_open(descriptor: Any) -> bool:
    """Return True for descriptors that match anything."""
    return descriptor is Any or isinstance(descriptor, TypeVar | ForwardRef | str)


def is_compatible(produced: Any, accepted: Any) -> bool:
    """Return True when a value typed ``produced`` may flow into ``accepted``.

    ``object`` accepts every value but is not accepted by narrower inputs.
    Descriptor forms this check does not understand (``Literal``,
    ``Annotated``, protocols with non-method members) are accepted.
    """
    if (
        is_open(produced)
        or is_open(accepted)
        or accepted is object
        or produced == accepted
    ):
        return True

    accepted_origin = get_origin(accepted)
    produced_origin = get_origin(produced)
    if accepted_origin in _UNIONS:
        if produced_origin in _UNIONS:
            return all(is_compatible(m, accepted) for m in get_args(produced))
        return any(is_compatible(produced, m) for m in get_args(accepted))
    if produced_origin in _UNIONS:
        return all(is_compatible(m, accepted) for m in get_args(produced))

    produced_base = produced_origin or produced
    accepted_base = accepted_origin or accepted
    if not (isinstance(produced_base, type) and isinstance(accepted_base, type)):
        return True
    try:
        if not issubclass(produced_base, accepted_base):
            return False
    except TypeError:
        return True

    produced_args, accepted_args = get_args(produced), get_args(accepted)
    if not produced_args or not accepted_args:
        return True
    if Ellipsis in produced_args or Ellipsis in accepted_args:
        return True
    if len(produced_args) != len(accepted_args):
        return False
    return all(
        is_compatible(p, a) for p, a in zip(produced_args, accepted_args, strict=True)
    )


def describe(descriptor: Any) -> str:
    """Render a descriptor for error messages."""
    if isinstance(descriptor, type) and not get_args(descriptor):
        return descriptor.__qualname__
    return repr(descriptor).replace("typing.", "")


def accepts_empty(command: Command[Any, Any]) -> bool:
    """Return True when ``command`` can be started without an input value."""
    return is_compatible(EmptyCommandData, command.input_type)


def check_link(
    upstream: Command[Any, Any], downstream: Command[Any, Any], config: Config
) -> None:
    """Verify ``upstream``'s output may feed ``downstream``'s input.

    Raises:
        ChainCompositionError: On mismatch while ``config.strict_types`` is on.
    """
    if is_compatible(upstream.output_type, downstream.input_type):
        return
    message = (
        f"Cannot append {downstream.name} (input {describe(downstream.input_type)}) "
        f"after {upstream.name} (output {describe(upstream.output_type)})"
    )
    if config.strict_types:
        raise ChainCompositionError(
            message,
            hint="Insert a converting step, or disable strict_types to link anyway.",
        )
    log.warning("%s; linking anyway because strict_types is off", message)


def _result_value_type(hint: Any) -> Any:
    """Extract ``X`` from ``Result[X]``, ``Success[X]`` or ``Success[X] | Failure``."""
    if hint is types.NoneType:
        return EmptyCommandData
    origin = get_origin(hint)
    if origin is Success or origin is Result:
        args = get_args(hint)
        return args[0] if args else Any
    if origin in _UNIONS:
        members = [m for m in get_args(hint) if m is not Failure]
        if len(members) == 1:
            return _result_value_type(members[0])
    return Any


def infer_function_descriptors(fn: typing.Callable[..., Any]) -> tuple[Any, Any]:
    """Infer ``(input_type, output_type)`` from a function's annotations.

    Unannotated or unresolvable signatures yield ``Any``.
    """
    try:
        hints = typing.get_type_hints(fn)
    except Exception as e:
        log.debug("Could not resolve annotations of %r: %s", fn, e)
        return Any, Any

    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        params = []
    input_type = hints.get(params[0].name, Any) if params else Any
    output_type = _result_value_type(hints["return"]) if "return" in hints else Any
    return input_type, output_type


__all__ = ()  # internal-only
