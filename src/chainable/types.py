"""Shared type vocabulary for commands and chains."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import enum


@dataclass(frozen=True, slots=True)
class EmptyCommandData:
    """Unit placeholder for commands without meaningful input or output.

    Used as the input of a chain head and the output of side-effect steps.
    Every instance compares equal to every other.
    """


EMPTY = EmptyCommandData()


class _Omitted(enum.Enum):
    INPUT = enum.auto()


OMITTED = _Omitted.INPUT
"""Default of ``execute(input=...)``: the caller passed no input."""

type ErrorHandler = Callable[[Exception], Awaitable[None] | None]
"""Caller-supplied callback fired once with the first failure of a chain."""

type Continuation[T] = Callable[[T, ErrorHandler], Awaitable[None]]
"""What runs next with a command's output; installed by ``append``."""

__all__ = ["EMPTY", "OMITTED", "Continuation", "EmptyCommandData", "ErrorHandler"]
