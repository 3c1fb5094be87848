"""Contract tests for chain composition and execution.

These pin the guarantees every chain must keep: values flow unchanged between
adjacent commands, the first failure reaches the handler exactly once and
stops the chain, and successful chains never touch the handler.
"""

from __future__ import annotations

import asyncio
import gc
from typing import Any
import weakref

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from chainable import (
    EMPTY,
    Chain,
    ChainCompositionError,
    Command,
    EmptyCommandData,
    Failure,
    Result,
    Success,
    compose,
)
from tests.helpers import Boom, CallLog, ErrorRecorder, RecordingCommand

pytestmark = pytest.mark.contract


def _build(n: int, fail_at: int | None, log: CallLog) -> list[RecordingCommand]:
    return [
        RecordingCommand(
            f"c{k}",
            log,
            lambda v: v + 1,
            error=Boom(f"c{k}") if k == fail_at else None,
        )
        for k in range(1, n + 1)
    ]


def _link(commands: list[RecordingCommand]) -> Chain[Any, Any]:
    built: Chain[Any, Any] = Chain(commands[0], commands[0])
    for cmd in commands[1:]:
        built = built.append(cmd)
    return built


class TestValueHandoff:
    @pytest.mark.asyncio
    async def test_next_command_receives_exact_output(self) -> None:
        log = CallLog()
        produced = object()
        a = RecordingCommand("a", log, lambda _: produced)
        b = RecordingCommand("b", log)

        a.append(b)
        await a.execute("start", error_handler=ErrorRecorder())

        assert log.entries == [("a", "start"), ("b", produced)]

    @pytest.mark.asyncio
    async def test_side_effect_step_hands_off_unit_value(self) -> None:
        log = CallLog()
        seen: list[int] = []
        head = RecordingCommand("head", log, lambda _: 7)
        tail = RecordingCommand("tail", log)

        head.append(seen.append).append(tail)
        await head.execute(0, error_handler=ErrorRecorder())

        assert seen == [7]
        assert log.entries[-1] == ("tail", EMPTY)
        assert isinstance(log.entries[-1][1], EmptyCommandData)


class TestErrorPropagation:
    @settings(max_examples=50, deadline=None)
    @given(data=st.data())
    def test_failure_at_k_reports_once_and_skips_rest(self, data: Any) -> None:
        n = data.draw(st.integers(min_value=1, max_value=12), label="n")
        k = data.draw(st.integers(min_value=1, max_value=n), label="k")
        log = CallLog()
        commands = _build(n, k, log)
        errors = ErrorRecorder()

        asyncio.run(_link(commands).execute(0, error_handler=errors))

        assert errors.errors == [commands[k - 1].error]
        assert log.names == [f"c{i}" for i in range(1, k + 1)]
        assert all(c.calls == 0 for c in commands[k:])

    @settings(max_examples=30, deadline=None)
    @given(n=st.integers(min_value=1, max_value=12))
    def test_all_success_runs_each_once_in_order(self, n: int) -> None:
        log = CallLog()
        commands = _build(n, None, log)
        errors = ErrorRecorder()

        asyncio.run(_link(commands).execute(0, error_handler=errors))

        assert errors.errors == []
        assert log.entries == [(f"c{i}", i - 1) for i in range(1, n + 1)]
        assert all(c.calls == 1 for c in commands)

    @pytest.mark.asyncio
    async def test_error_is_passed_through_unwrapped(self) -> None:
        error = KeyError("missing")
        errors = ErrorRecorder()
        await compose(lambda _: Failure(error)).execute(error_handler=errors)
        assert errors.errors[0] is error

    @pytest.mark.asyncio
    async def test_exception_raised_by_handler_propagates(self) -> None:
        def handler(error: Exception) -> None:
            raise RuntimeError("handler broke") from error

        with pytest.raises(RuntimeError, match="handler broke"):
            await compose(lambda _: Failure(Boom())).execute(error_handler=handler)


class TestComposition:
    @pytest.mark.asyncio
    async def test_partial_wrapper_reuse_does_not_duplicate_steps(self) -> None:
        log = CallLog()
        a, b, c, d = (RecordingCommand(x, log) for x in "abcd")

        partial = a.append(b)
        extended = partial.append(c)
        final = extended.append(d)
        await final.execute(1, error_handler=ErrorRecorder())

        assert log.names == ["a", "b", "c", "d"]
        assert partial.last is b
        assert final.first is a
        assert final.stage_names == ("a", "b", "c", "d")
        assert len(final) == 4

    def test_continuation_is_set_only_once(self) -> None:
        log = CallLog()
        a, b, c = (RecordingCommand(x, log) for x in "abc")
        a.append(b)
        with pytest.raises(ChainCompositionError, match="already linked to b"):
            a.append(c)
        assert a.next_command is b

    def test_cycles_are_rejected(self) -> None:
        log = CallLog()
        a, b = RecordingCommand("a", log), RecordingCommand("b", log)
        a.append(b)
        with pytest.raises(ChainCompositionError, match="cycle"):
            b.append(a)
        solo = RecordingCommand("solo", log)
        with pytest.raises(ChainCompositionError, match="cycle"):
            solo.append(solo)

    def test_non_callable_step_is_rejected(self) -> None:
        with pytest.raises(TypeError, match="expected a Command or a callable"):
            RecordingCommand("a", CallLog()).append(42)

    @pytest.mark.asyncio
    async def test_chain_can_be_executed_again(self) -> None:
        log = CallLog()
        built = RecordingCommand("a", log, lambda v: v * 10).append(
            RecordingCommand("b", log)
        )
        await built.execute(1, error_handler=ErrorRecorder())
        await built.execute(2, error_handler=ErrorRecorder())
        assert log.entries == [("a", 1), ("b", 10), ("a", 2), ("b", 20)]


class TestExecutionModel:
    @pytest.mark.asyncio
    async def test_commands_never_overlap(self) -> None:
        active = 0
        peak = 0

        class Slow(Command[int, int]):
            async def main(self, input: int) -> Result[int]:
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0)
                active -= 1
                return Success(input + 1)

        received: list[int] = []
        await compose(Slow(), Slow(), Slow(), received.append).execute(
            0, error_handler=ErrorRecorder()
        )

        assert received == [3]
        assert peak == 1

    @pytest.mark.asyncio
    async def test_long_chains_do_not_exhaust_the_stack(self) -> None:
        log = CallLog()
        commands = [
            RecordingCommand(f"c{i}", log, lambda v: v + 1) for i in range(3000)
        ]
        received: list[int] = []
        _link(commands).append(received.append)

        await commands[0].execute(0, error_handler=ErrorRecorder())

        assert received == [3000]

    @pytest.mark.asyncio
    async def test_executed_chain_is_released_without_cycles(self) -> None:
        log = CallLog()
        head = RecordingCommand("a", log)
        head.append(RecordingCommand("b", log))
        ref = weakref.ref(head)

        await head.execute(1, error_handler=ErrorRecorder())
        gc.disable()
        try:
            del head
            assert ref() is None
        finally:
            gc.enable()

    @pytest.mark.asyncio
    async def test_unit_input_required_for_typed_head(self) -> None:
        class NeedsInt(Command[int, int]):
            async def main(self, input: int) -> Result[int]:
                return Success(input)

        with pytest.raises(TypeError, match="expects int input"):
            await NeedsInt().execute(error_handler=ErrorRecorder())
