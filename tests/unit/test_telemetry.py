"""Tests for the telemetry context and its use by fill."""

import dataclasses

import pytest

from schemafill import fill
from schemafill.telemetry import (
    InMemoryReporter,
    TelemetryContext,
    TelemetryReporter,
    telemetry_enabled,
)

pytestmark = pytest.mark.unit


@dataclasses.dataclass
class Server:
    host: str
    port: int = 8080
    workers: int = 4


def test_disabled_by_default_returns_shared_no_op():
    reporter = InMemoryReporter()
    first = TelemetryContext(reporter)
    second = TelemetryContext(reporter)

    assert not telemetry_enabled()
    assert first is second
    with first("anything") as ctx:
        ctx.count("ignored")
    assert reporter.metrics == []
    assert reporter.timings == []


@pytest.mark.parametrize("variable", ["SCHEMAFILL_TELEMETRY", "DEBUG"])
def test_enabled_through_environment(monkeypatch, variable):
    monkeypatch.setenv(variable, "1")
    assert telemetry_enabled()


def test_enabled_without_reporters_stays_no_op(monkeypatch):
    monkeypatch.setenv("SCHEMAFILL_TELEMETRY", "1")
    assert TelemetryContext() is TelemetryContext()


def test_nested_scopes_build_dotted_paths(monkeypatch):
    monkeypatch.setenv("SCHEMAFILL_TELEMETRY", "1")
    reporter = InMemoryReporter()
    tele = TelemetryContext(reporter)

    with tele("outer"), tele("inner") as ctx:
        ctx.count("hits", 2)
        ctx.gauge("ratio", 0.5)

    assert [scope for scope, _, _ in reporter.timings] == ["outer.inner", "outer"]
    assert reporter.metrics == [
        ("outer.inner.hits", 2, {"metric_type": "counter"}),
        ("outer.inner.ratio", 0.5, {"metric_type": "gauge"}),
    ]


def test_failing_reporter_does_not_break_caller(monkeypatch, caplog):
    monkeypatch.setenv("SCHEMAFILL_TELEMETRY", "1")

    class Broken:
        def record_timing(self, scope, duration, **metadata):
            raise RuntimeError("reporter down")

        def record_metric(self, scope, value, **metadata):
            raise RuntimeError("reporter down")

    assert isinstance(Broken(), TelemetryReporter)
    tele = TelemetryContext(Broken())
    with tele("scope") as ctx:
        ctx.count("x")

    assert "reporter down" in caplog.text


def test_empty_scope_name_is_rejected(monkeypatch):
    monkeypatch.setenv("SCHEMAFILL_TELEMETRY", "1")
    tele = TelemetryContext(InMemoryReporter())
    with pytest.raises(ValueError, match="non-empty"), tele(""):
        pass


def test_fill_reports_field_counters(monkeypatch):
    monkeypatch.setenv("SCHEMAFILL_TELEMETRY", "1")
    reporter = InMemoryReporter()

    fill(
        Server,
        source="prop",
        properties={"host": "h", "port": "9000", "workers": "many"},
        telemetry=TelemetryContext(reporter),
    )

    totals = reporter.totals()
    assert totals["fill.fields.filled"] == 2
    assert totals["fill.fields.defaulted"] == 1
    assert totals["fill.failures"] == 0
    assert reporter.timings[0][0] == "fill"
    assert reporter.timings[0][2] == {"target": "Server", "source": "prop"}
