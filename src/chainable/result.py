"""Two-variant outcome type delivered by every command.

A command never raises to report an expected failure; it returns
``Failure(error)`` and the chain routes the error to the handler.
"""

from __future__ import annotations

import dataclasses
import typing


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TValue]:
    """A command produced its output."""

    value: TValue


@dataclasses.dataclass(frozen=True, slots=True)
class Failure:
    """A command failed; ``error`` is passed to the handler untouched."""

    error: Exception


type Result[TValue] = Success[TValue] | Failure


def is_result(obj: object) -> typing.TypeGuard[Success[typing.Any] | Failure]:
    """Return True when ``obj`` is a ``Success`` or ``Failure``."""
    return isinstance(obj, Success | Failure)


__all__ = ["Failure", "Result", "Success", "is_result"]
