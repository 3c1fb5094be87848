"""Head/tail handle returned by ``append``.

A ``Chain`` remembers where execution starts (``first``) and where the next
``append`` attaches (``last``), so a whole chain can be built fluently in one
expression and still be executed from its head.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from chainable.types import OMITTED, ErrorHandler

if TYPE_CHECKING:
    from chainable.command import Command


@dataclass(frozen=True, slots=True)
class Chain[HeadT: "Command[Any, Any]", TailT: "Command[Any, Any]"]:
    """An immutable pair of the chain's head and its current tail.

    Example:
        chain = ConstantCommand((2, 3)).append(Add()).append(Double())
        await chain.execute(error_handler=print)
    """

    first: HeadT
    last: TailT

    def append(self, next_step: Any) -> Chain[HeadT, Any]:
        """Link ``next_step`` after the tail and return a handle to the new tail.

        The receiver stays valid; it keeps pointing at the previous tail,
        which is now linked.
        """
        return Chain(self.first, self.last.append(next_step).last)

    async def execute(
        self,
        input: Any = OMITTED,
        *,
        error_handler: ErrorHandler,
    ) -> None:
        """Execute from the head; see ``Command.execute``."""
        await self.first.execute(input, error_handler=error_handler)

    @property
    def commands(self) -> tuple[Command[Any, Any], ...]:
        """Every command reachable from the head, in execution order."""
        return tuple(iter(self))

    @property
    def stage_names(self) -> tuple[str, ...]:
        """Names of the chain's commands in execution order."""
        return tuple(c.name for c in self)

    def __iter__(self) -> Iterator[Command[Any, Any]]:
        node: Command[Any, Any] | None = self.first
        while node is not None:
            yield node
            node = node.next_command

    def __len__(self) -> int:
        return sum(1 for _ in self)


def compose(*steps: Any) -> Chain[Any, Any]:
    """Build a chain from a command or function followed by further steps.

    ``compose(a, b, c)`` is ``a.append(b).append(c)``; a single step yields a
    one-command chain.

    Raises:
        ValueError: If no steps are given.
    """
    from chainable.function import as_command

    if not steps:
        raise ValueError("compose() needs at least one step")
    head = as_command(steps[0])
    built: Chain[Any, Any] = Chain(head, head)
    for step in steps[1:]:
        built = built.append(step)
    return built


__all__ = ["Chain", "compose"]
