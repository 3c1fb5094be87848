"""Value-producing commands."""

from __future__ import annotations

from typing import Any

from chainable.command import Command
from chainable.result import Result, Success
from chainable.types import EmptyCommandData


class ConstantCommand[T](Command[EmptyCommandData, T]):
    """Chain head that emits a fixed value.

    ``output_type`` defaults to the value's class; pass one explicitly for
    parameterized types such as ``tuple[int, int]``.
    """

    def __init__(self, value: T, *, output_type: Any = None) -> None:
        self.value = value
        self.output_type = output_type if output_type is not None else type(value)

    async def main(self, input: EmptyCommandData) -> Result[T]:
        return Success(self.value)
