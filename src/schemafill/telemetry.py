"""Optional timings and counters for fills.

Telemetry stays off unless ``SCHEMAFILL_TELEMETRY=1`` (or ``DEBUG=1``) is set
and at least one reporter is given; otherwise ``TelemetryContext()`` hands
back a shared no-op. Scopes nest, so a counter recorded inside the ``fill``
scope reaches reporters as ``fill.<name>``.
"""

from collections import Counter
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
import logging
import os
import time
from typing import Any, NamedTuple, Protocol, runtime_checkable

log = logging.getLogger(__name__)

_ENABLE_FLAGS = ("SCHEMAFILL_TELEMETRY", "DEBUG")

_active_scopes: ContextVar[tuple[str, ...]] = ContextVar(
    "schemafill_scopes", default=()
)


def telemetry_enabled() -> bool:
    """True when one of the enabling variables is set to ``1``."""
    return any(os.getenv(flag) == "1" for flag in _ENABLE_FLAGS)


@runtime_checkable
class TelemetryReporter(Protocol):
    """Receives scope timings and metric readings."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


class _NullTelemetry:
    __slots__ = ()

    def __call__(self, name: str, **metadata: Any) -> "_NullTelemetry":  # noqa: ARG002
        return self

    def __enter__(self) -> "_NullTelemetry":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        pass


class _ReportingTelemetry:
    """Forwards scope timings and metrics to every reporter."""

    __slots__ = ("_reporters",)

    def __init__(self, reporters: tuple[TelemetryReporter, ...]) -> None:
        self._reporters = reporters

    @contextmanager
    def __call__(self, name: str, **metadata: Any) -> Iterator["_ReportingTelemetry"]:
        if not isinstance(name, str) or not name:
            raise ValueError("Scope name must be a non-empty string")

        scopes = (*_active_scopes.get(), name)
        token = _active_scopes.set(scopes)
        started = time.perf_counter()
        try:
            yield self
        finally:
            elapsed = time.perf_counter() - started
            _active_scopes.reset(token)
            scope = ".".join(scopes)
            self._dispatch(
                lambda reporter: reporter.record_timing(scope, elapsed, **metadata)
            )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self._metric(name, increment, "counter", metadata)

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        self._metric(name, value, "gauge", metadata)

    def _metric(
        self, name: str, value: Any, kind: str, metadata: dict[str, Any]
    ) -> None:
        scope = ".".join((*_active_scopes.get(), name))
        self._dispatch(
            lambda reporter: reporter.record_metric(
                scope, value, metric_type=kind, **metadata
            )
        )

    def _dispatch(self, call: Callable[[TelemetryReporter], None]) -> None:
        # A broken reporter must never fail the fill it observes.
        for reporter in self._reporters:
            try:
                call(reporter)
            except Exception as e:
                log.warning(
                    "Telemetry reporter %s failed: %s", type(reporter).__name__, e
                )


type FillTelemetry = _ReportingTelemetry | _NullTelemetry

_DISABLED = _NullTelemetry()


def TelemetryContext(*reporters: TelemetryReporter) -> FillTelemetry:  # noqa: N802
    """Return a reporting context, or the shared no-op when telemetry is off."""
    if reporters and telemetry_enabled():
        return _ReportingTelemetry(reporters)
    return _DISABLED


class Reading(NamedTuple):
    scope: str
    value: Any
    metadata: dict[str, Any]


class InMemoryReporter:
    """Keeps every reading; handy in tests and interactive sessions."""

    def __init__(self) -> None:
        self.timings: list[Reading] = []
        self.metrics: list[Reading] = []

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings.append(Reading(scope, duration, metadata))

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics.append(Reading(scope, value, metadata))

    def totals(self) -> Counter[str]:
        """Sum of numeric metric values per scope."""
        sums: Counter[str] = Counter()
        for reading in self.metrics:
            if isinstance(reading.value, int | float):
                sums[reading.scope] += reading.value
        return sums
