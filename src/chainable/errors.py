"""Exception hierarchy for chainable.

Errors produced by a command's ``main`` are opaque to the chain and reach the
caller's error handler unchanged. The classes below cover misuse of the chain
machinery itself, plus the failures raised by the stock commands.
"""

from __future__ import annotations


class ChainableError(Exception):
    """Base exception for all chainable errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(ChainableError):
    """Configuration validation or resolution failed."""


class ChainCompositionError(ChainableError):
    """Two commands could not be linked by ``append``."""


class CompletionError(ChainableError):
    """A completion callback was invoked more than once."""


class InvariantViolationError(ChainableError):
    """A command broke the result protocol (a bug, not a chain failure).

    Raised when ``main``, a wrapped function or a completion hands back
    something other than ``Success``/``Failure``.
    """

    def __init__(
        self,
        message: str,
        *,
        command_name: str | None = None,
        hint: str | None = None,
    ) -> None:
        self.command_name = command_name
        msg = message if command_name is None else f"[{command_name}] {message}"
        super().__init__(msg, hint=hint)


class SourceError(ChainableError):
    """Reading command input from a local source failed."""


class UploadError(ChainableError):
    """Uploading command output failed.

    ``status_code`` is set when the server answered; it stays ``None`` for
    transport failures (DNS, connection reset, timeout).
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.url = url
