"""
Global test configuration for schemafill.
"""

from collections.abc import Mapping
import logging
import os

import pytest


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_schemafill_env(request, monkeypatch):
    """Ensure a clean SCHEMAFILL_* environment for each test.

    Escape hatch: mark a test with @pytest.mark.allow_env_pollution to keep
    the current environment unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("SCHEMAFILL_"):
            monkeypatch.delenv(key, raising=False)
    # DEBUG=1 switches telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Keep httpx request logging out of test output."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioural guarantees of the public fill API",
        "integration: Component integration tests with mocked transports",
        "allow_env_pollution: Skip SCHEMAFILL_* environment isolation",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def counting_accessor():
    """Accessor that records every locator it was asked for."""

    class _Counting:
        def __init__(self, values: Mapping[str, object]) -> None:
            self.values = dict(values)
            self.calls: list[str] = []

        def read(self, locator: str) -> object:
            self.calls.append(locator)
            return self.values.get(locator)

    return _Counting
