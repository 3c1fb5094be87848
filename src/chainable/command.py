"""The command capability: one typed async step of a chain.

A command declares an Input and an Output type, produces a ``Result`` from
its input in ``main``, and holds at most one continuation. ``append`` installs
that continuation; ``execute`` runs the step and either hands the output on or
reports the failure to the error handler, never both.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
import inspect
import logging
from typing import TYPE_CHECKING, Any, Self, overload

from chainable import _typing
from chainable.chain import Chain
from chainable.config import Config, current_config
from chainable.errors import (
    ChainCompositionError,
    CompletionError,
    InvariantViolationError,
)
from chainable.result import Failure, Result, is_result
from chainable.telemetry import TelemetryContext, TelemetryContextProtocol
from chainable.types import (
    EMPTY,
    OMITTED,
    Continuation,
    EmptyCommandData,
    ErrorHandler,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from chainable.function import FunctionCommand
    from chainable.types import _Omitted

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Link[T]:
    """Continuation built by ``append``: run ``target`` with the output.

    Holds an owned reference to the next command; commands never point back
    at their predecessors.
    """

    target: Command[T, Any]

    async def __call__(self, output: T, error_handler: ErrorHandler) -> None:
        await self.target.execute(output, error_handler=error_handler)


class Command[InputT, OutputT](abc.ABC):
    """Base class for chainable commands.

    Subclasses implement ``main``. The Input/Output types given to the base
    (``class Add(Command[tuple[int, int], int])``) are checked statically by
    type checkers and recorded as ``input_type``/``output_type`` for the
    runtime check performed by ``append``.
    """

    input_type: Any
    output_type: Any
    continuation: Continuation[OutputT] | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        resolved = _typing.resolve_class_descriptors(cls, Command)
        if resolved is None:
            return
        if "input_type" not in cls.__dict__:
            cls.input_type = resolved[0]
        if "output_type" not in cls.__dict__:
            cls.output_type = resolved[1]

    @property
    def name(self) -> str:
        """Display name used in logs, telemetry and error messages."""
        return type(self).__name__

    @property
    def next_command(self) -> Command[OutputT, Any] | None:
        """The command linked after this one, if any."""
        cont = self.continuation
        return cont.target if isinstance(cont, Link) else None

    @abc.abstractmethod
    async def main(self, input: InputT) -> Result[OutputT]:
        """Do the command's work and return exactly one result."""
        ...

    # --- Composition ---

    @overload
    def append[NextT](
        self, next_step: Command[OutputT, NextT]
    ) -> Chain[Self, Command[OutputT, NextT]]: ...

    @overload
    def append[NextT](
        self,
        next_step: Callable[[OutputT], Awaitable[Result[NextT]] | Result[NextT]],
    ) -> Chain[Self, FunctionCommand[OutputT, NextT]]: ...

    @overload
    def append(
        self, next_step: Callable[[OutputT], Awaitable[None] | None]
    ) -> Chain[Self, FunctionCommand[OutputT, EmptyCommandData]]: ...

    def append(self, next_step: Any) -> Chain[Self, Any]:
        """Link ``next_step`` to run on this command's output.

        ``next_step`` is a command or a plain function; functions are wrapped
        in ``FunctionCommand``. Returns a ``Chain`` anchored at this command
        whose tail is the appended command.

        Raises:
            ChainCompositionError: If this command already has a continuation,
                the link would form a cycle, or the types disagree.
        """
        from chainable.function import as_command

        nxt = as_command(next_step)
        if self.continuation is not None:
            current = self.next_command
            raise ChainCompositionError(
                f"{self.name} is already linked"
                + (f" to {current.name}" if current is not None else ""),
                hint="A continuation is set once; append to the chain's tail or build a new command.",
            )
        if _reaches(nxt, self):
            raise ChainCompositionError(
                f"Appending {nxt.name} after {self.name} would create a cycle",
            )
        _typing.check_link(self, nxt, current_config())
        self.continuation = Link(nxt)
        log.debug("Linked %s -> %s", self.name, nxt.name)
        return Chain(self, nxt)

    # --- Execution ---

    async def execute(
        self,
        input: InputT | EmptyCommandData | _Omitted = OMITTED,
        *,
        error_handler: ErrorHandler,
    ) -> None:
        """Run this command and everything linked after it.

        On the first failure ``error_handler`` is called once with the
        original error and no later command runs. A successful tail ends the
        execution silently.

        Omitting ``input`` starts the command with ``EMPTY``. That is only
        allowed for commands accepting ``EmptyCommandData``; values handed
        over by an upstream command are never checked here, whether the next
        command runs inline or through an overridden ``execute``.

        Raises:
            TypeError: If ``input`` is omitted for a command that needs one.
            InvariantViolationError: If a command returns a non-Result value.
        """
        if input is OMITTED:
            if not _typing.accepts_empty(self):
                raise TypeError(
                    f"{self.name} expects {_typing.describe(self.input_type)} "
                    "input; pass it to execute()"
                )
            input = EMPTY

        config = current_config()
        ctx = TelemetryContext()
        command: Command[Any, Any] = self
        value: Any = input
        # Links to commands using the shared execute are followed in a loop so
        # chain length is not limited by coroutine nesting depth.
        while True:
            result = await command._step(value, config, ctx)
            if isinstance(result, Failure):
                log.debug("%s failed: %r", command.name, result.error)
                ctx.count("chain.error", command=command.name)
                outcome = error_handler(result.error)
                if inspect.isawaitable(outcome):
                    await outcome
                return

            cont = command.continuation
            if cont is None:
                log.debug("%s completed the chain", command.name)
                return
            if isinstance(cont, Link) and type(cont.target).execute is Command.execute:
                command, value = cont.target, result.value
                continue
            await cont(result.value, error_handler)
            return

    async def _step(
        self, value: InputT, config: Config, ctx: TelemetryContextProtocol
    ) -> Result[OutputT]:
        with ctx("chain.command", command=self.name):
            try:
                result: Any = await self.main(value)
            except (InvariantViolationError, CompletionError):
                raise
            except Exception as e:
                if not config.capture_exceptions:
                    raise
                log.debug("%s raised %r; routing to the error handler", self.name, e)
                result = Failure(e)
        if not is_result(result):
            raise InvariantViolationError(
                f"main() returned {type(result).__name__}; expected Success|Failure.",
                command_name=self.name,
            )
        return result

    def __repr__(self) -> str:
        return (
            f"<{self.name} {_typing.describe(self.input_type)} -> "
            f"{_typing.describe(self.output_type)}>"
        )


Command.input_type, Command.output_type = Command.__type_params__


def _reaches(start: Command[Any, Any], target: Command[Any, Any]) -> bool:
    node: Command[Any, Any] | None = start
    while node is not None:
        if node is target:
            return True
        node = node.next_command
    return False


__all__ = ["Command", "Link"]
