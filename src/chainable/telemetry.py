"""Telemetry context and reporter interfaces.

Chains record one ``chain.command`` timing scope per executed step and a
``chain.error`` counter per failure. With no reporter installed and
``CHAINABLE_TELEMETRY`` unset, every call lands on a shared no-op context.
"""

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "chainable_scope_stack",
    default=(),
)

_installed: list["TelemetryReporter"] = []


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless stand-in used when telemetry is off."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        _: type[BaseException] | None,
        __: BaseException | None,
        ___: TracebackType | None,
    ) -> bool | None:
        return None

    @property
    def is_enabled(self) -> bool:
        return False

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Forwards scopes and metrics to every reporter."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager["_EnabledTelemetryContext"]:
        return self._scope(name, **metadata)

    @contextmanager
    def _scope(self, name: str, **metadata: Any) -> Iterator["_EnabledTelemetryContext"]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        stack = _scope_stack_var.get()
        scope_path = ".".join((*stack, name))
        token = _scope_stack_var.set((*stack, name))
        start = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start
            _scope_stack_var.reset(token)
            enriched = {"depth": len(stack), **metadata}
            for reporter in self.reporters:
                try:
                    reporter.record_timing(scope_path, duration, **enriched)
                except Exception as e:
                    log.error(
                        "Telemetry reporter '%s' failed: %s",
                        type(reporter).__name__,
                        e,
                        exc_info=True,
                    )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric under the current scope path."""
        stack = _scope_stack_var.get()
        scope_path = ".".join((*stack, name))
        for reporter in self.reporters:
            try:
                reporter.record_metric(scope_path, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        """Record a counter metric."""
        self.metric(name, increment, metric_type="counter", **metadata)

    @property
    def is_enabled(self) -> bool:
        return True


_NO_OP_SINGLETON = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return a telemetry context.

    Explicit ``reporters`` win; otherwise installed reporters are used. When
    none exist but ``CHAINABLE_TELEMETRY=1`` is set, a process-wide
    ``SimpleReporter`` is installed on first use.
    """
    reps = reporters or tuple(_installed)
    if not reps and os.getenv("CHAINABLE_TELEMETRY") == "1":
        reporter = SimpleReporter()
        install_reporter(reporter)
        reps = (reporter,)
    if reps:
        return _EnabledTelemetryContext(*reps)
    return _NO_OP_SINGLETON


def install_reporter(reporter: TelemetryReporter) -> None:
    """Install a reporter for every chain executed afterwards."""
    if reporter not in _installed:
        _installed.append(reporter)


def uninstall_reporter(reporter: TelemetryReporter) -> None:
    """Remove a previously installed reporter; unknown reporters are ignored."""
    if reporter in _installed:
        _installed.remove(reporter)


class SimpleReporter:
    """In-memory reporter for development and tests."""

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (duration, metadata)
        )

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (value, metadata)
        )

    def reset(self) -> None:
        """Clear all collected telemetry."""
        self.timings.clear()
        self.metrics.clear()

    def as_dict(self) -> dict[str, Any]:
        """Return a plain snapshot of collected data."""
        return {
            "timings": {key: list(values) for key, values in self.timings.items()},
            "metrics": {key: list(values) for key, values in self.metrics.items()},
        }

    def get_report(self) -> str:
        """Render a flat per-scope summary."""
        lines = ["=== Telemetry Report ===", "", "--- Timings ---"]
        for scope, values in sorted(self.timings.items()):
            durations = [v[0] for v in values]
            lines.append(
                f"{scope:<30} | Calls: {len(durations):<4} | "
                f"Avg: {sum(durations) / len(durations):.4f}s | "
                f"Total: {sum(durations):.4f}s"
            )
        if self.metrics:
            lines += ["", "--- Metrics ---"]
            for scope, values in sorted(self.metrics.items()):
                total = sum(v[0] for v in values if isinstance(v[0], int | float))
                lines.append(
                    f"{scope:<30} | Count: {len(values):<4} | Total: {total:,.0f}"
                )
        return "\n".join(lines)


__all__ = [
    "SimpleReporter",
    "TelemetryContext",
    "TelemetryReporter",
    "install_reporter",
    "uninstall_reporter",
]
