"""Adapter that turns a plain function into a command.

One-off steps are rarely worth a dedicated class; ``FunctionCommand`` lets a
lambda or small function sit anywhere in a chain.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import inspect
import logging
from typing import Any

from chainable import _typing
from chainable.command import Command
from chainable.errors import InvariantViolationError
from chainable.result import Result, Success, is_result
from chainable.types import EMPTY

log = logging.getLogger(__name__)

type StepFunction[I, O] = Callable[[I], Result[O] | Awaitable[Result[O]]]
type EffectFunction[I] = Callable[[I], None | Awaitable[None]]


class FunctionCommand[InputT, OutputT](Command[InputT, OutputT]):
    """Wrap ``fn(input)`` as a command.

    The function may be synchronous or ``async``. What it returns decides the
    step's shape:

    - ``Success``/``Failure``: used as the command's result.
    - ``None``: a side-effecting step; the result is ``Success(EMPTY)`` so the
      chain continues with the unit placeholder.

    Input/Output descriptors are inferred from the function's annotations
    unless given explicitly.
    """

    def __init__(
        self,
        fn: StepFunction[InputT, OutputT] | EffectFunction[InputT],
        *,
        name: str | None = None,
        input_type: Any = None,
        output_type: Any = None,
    ) -> None:
        if not callable(fn):
            raise TypeError(f"FunctionCommand expects a callable, got {fn!r}")
        self.fn = fn
        self._name = name or getattr(fn, "__qualname__", None) or type(fn).__name__
        inferred_in, inferred_out = _typing.infer_function_descriptors(fn)
        self.input_type = input_type if input_type is not None else inferred_in
        self.output_type = output_type if output_type is not None else inferred_out

    @property
    def name(self) -> str:
        return self._name

    async def main(self, input: InputT) -> Result[OutputT]:
        outcome: Any = self.fn(input)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if outcome is None:
            return Success(EMPTY)  # type: ignore[arg-type]
        if not is_result(outcome):
            raise InvariantViolationError(
                f"function returned {type(outcome).__name__}; expected "
                "Success|Failure, or None for a side-effect step.",
                command_name=self.name,
                hint="Wrap plain values in Success(...).",
            )
        return outcome


def as_command(step: Command[Any, Any] | Callable[..., Any]) -> Command[Any, Any]:
    """Return ``step`` as a command, wrapping plain callables.

    Raises:
        TypeError: If ``step`` is neither a command nor callable.
    """
    if isinstance(step, Command):
        return step
    if callable(step):
        return FunctionCommand(step)
    raise TypeError(f"Cannot chain {step!r}: expected a Command or a callable")


__all__ = ["EffectFunction", "FunctionCommand", "StepFunction", "as_command"]
