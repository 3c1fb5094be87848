"""Completion-callback commands.

Some work reports back through a callback rather than a coroutine: thread
pools, legacy SDKs, event-loop callbacks. ``CallbackCommand`` bridges that
style into a chain. Its ``start`` receives a one-shot ``Completion``; the
chain resumes when the completion is first called, from any thread.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

from chainable.command import Command
from chainable.config import current_config
from chainable.errors import CompletionError, InvariantViolationError
from chainable.result import Failure, Result, Success, is_result

if TYPE_CHECKING:
    from collections.abc import Callable

    from chainable.config import DoubleCompletionPolicy

log = logging.getLogger(__name__)


def _consume_future_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'Future exception was never retrieved' when ``start`` raised first."""
    if not fut.cancelled():
        fut.exception()


class Completion[T]:
    """One-shot callable delivering a command's result.

    Only the first call counts. Later calls follow the configured
    ``on_double_completion`` policy: ``"raise"`` raises ``CompletionError`` in
    the caller, ``"warn"`` logs and drops the result, ``"ignore"`` drops it
    silently. A completion that is never called stalls its chain; there is no
    timeout.
    """

    def __init__(
        self,
        future: asyncio.Future[Result[T]],
        *,
        command_name: str,
        policy: DoubleCompletionPolicy = "raise",
    ) -> None:
        self._future = future
        self._loop = future.get_loop()
        self._lock = threading.Lock()
        self._called = False
        self.command_name = command_name
        self.policy = policy

    @property
    def called(self) -> bool:
        """Whether the completion has already been invoked."""
        return self._called

    def __call__(self, result: Result[T]) -> None:
        if not is_result(result):
            self._reject_non_result(result)
            return
        with self._lock:
            first = not self._called
            self._called = True
        if not first:
            self._reject_repeat()
            return
        self._dispatch(self._deliver, result)

    def succeed(self, value: T) -> None:
        """Shorthand for ``completion(Success(value))``."""
        self(Success(value))

    def fail(self, error: Exception) -> None:
        """Shorthand for ``completion(Failure(error))``."""
        self(Failure(error))

    def _on_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _dispatch(self, fn: Callable[[Any], None], arg: Any) -> None:
        if self._on_loop():
            fn(arg)
        else:
            self._loop.call_soon_threadsafe(fn, arg)

    def _deliver(self, result: Result[T]) -> None:
        # The awaiting task may have been cancelled in the meantime.
        if not self._future.done():
            self._future.set_result(result)

    def _fail_future(self, error: BaseException) -> None:
        if not self._future.done():
            self._future.set_exception(error)

    def _reject_non_result(self, value: object) -> None:
        """Fail the awaiting command; also raise when called on its loop.

        A violation raised in a worker thread would never reach the chain,
        so it always travels through the future as well.
        """
        error = InvariantViolationError(
            f"completion received {type(value).__name__}; expected Success|Failure.",
            command_name=self.command_name,
        )
        with self._lock:
            first = not self._called
            self._called = True
        if first:
            self._dispatch(self._fail_future, error)
        if self._on_loop():
            raise error
        log.debug("Deferred to the awaiting command: %s", error)

    def _reject_repeat(self) -> None:
        if self.policy == "raise":
            raise CompletionError(
                f"{self.command_name} invoked its completion more than once",
                hint="Call the completion exactly once per start().",
            )
        if self.policy == "warn":
            log.warning(
                "%s invoked its completion more than once; extra result dropped",
                self.command_name,
            )


class CallbackCommand[InputT, OutputT](Command[InputT, OutputT]):
    """Command whose work reports through a completion callback.

    Subclasses implement ``start``, which must arrange for ``completion`` to
    be called exactly once, immediately or later, from any thread.

    Example:
        class Sleep(CallbackCommand[float, float]):
            def start(self, input, completion):
                threading.Timer(input, completion.succeed, args=(input,)).start()
    """

    @abc.abstractmethod
    def start(self, input: InputT, completion: Completion[OutputT]) -> None:
        """Begin the work; report through ``completion``."""
        ...

    async def main(self, input: InputT) -> Result[OutputT]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Result[OutputT]] = loop.create_future()
        future.add_done_callback(_consume_future_exception)
        completion: Completion[OutputT] = Completion(
            future,
            command_name=self.name,
            policy=current_config().on_double_completion,
        )
        self.start(input, completion)
        return await future


__all__ = ["CallbackCommand", "Completion"]
