"""Test helpers (small, reusable command doubles).

Keep this file tiny and purpose-built: it exists so suites share one set of
recording commands instead of growing bespoke subclasses per test.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chainable import Command, EmptyCommandData, Failure, Result, Success


class Boom(Exception):
    """Sentinel error used by failing doubles."""


@dataclass
class CallLog:
    """Shared ordered record of which command ran with what input."""

    entries: list[tuple[str, Any]] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.entries]


class RecordingCommand(Command[Any, Any]):
    """Applies ``transform`` and records each call into a shared log."""

    def __init__(
        self,
        label: str,
        log: CallLog,
        transform: Any = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.label = label
        self.log = log
        self.transform = transform
        self.error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return self.label

    async def main(self, input: Any) -> Result[Any]:
        self.calls += 1
        self.log.entries.append((self.label, input))
        if self.error is not None:
            return Failure(self.error)
        return Success(self.transform(input) if self.transform else input)


class ErrorRecorder:
    """Error handler double that remembers every error it receives."""

    def __init__(self) -> None:
        self.errors: list[Exception] = []

    def __call__(self, error: Exception) -> None:
        self.errors.append(error)


# --- Arithmetic commands used by scenario tests ---


class Prime(Command[EmptyCommandData, tuple[int, int]]):
    def __init__(self, x: int, y: int) -> None:
        self.x, self.y = x, y

    async def main(self, input: EmptyCommandData) -> Result[tuple[int, int]]:
        return Success((self.x, self.y))


class Add(Command[tuple[int, int], int]):
    async def main(self, input: tuple[int, int]) -> Result[int]:
        return Success(input[0] + input[1])


class Double(Command[int, int]):
    async def main(self, input: int) -> Result[int]:
        return Success(input * 2)


class FailingDouble(Command[int, int]):
    def __init__(self, error: Exception) -> None:
        self.error = error

    async def main(self, input: int) -> Result[int]:
        return Failure(self.error)


class ToString(Command[int, str]):
    async def main(self, input: int) -> Result[str]:
        return Success(f"Result: {input}")
