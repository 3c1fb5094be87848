"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and telemetry reset.
All fixtures here are autouse unless noted.
"""

from __future__ import annotations

import logging
import os

import pytest

from chainable import telemetry

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr("chainable.config.load_dotenv", lambda *_a, **_k: False)


@pytest.fixture(autouse=True)
def isolate_chainable_env(request, monkeypatch):
    """Clear CHAINABLE_* variables so each test starts from defaults.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("CHAINABLE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_telemetry_reporters():
    """Drop reporters installed by a test."""
    before = list(telemetry._installed)
    yield
    telemetry._installed[:] = before


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# Shared fixtures (opt-in)
# =============================================================================


@pytest.fixture
def reporter():
    """Install an in-memory telemetry reporter for the test."""
    rep = telemetry.SimpleReporter()
    telemetry.install_reporter(rep)
    return rep
