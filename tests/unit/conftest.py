"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO I/O ALLOWED.

All unit tests should be completely isolated from:
- Network (preparer, relay)
- File system (except tmp_path)

Relay access goes through tests.mocks.FakeRelay; sleeps go through
tests.mocks.RecordingToken.
"""

import pytest

from tests.mocks import FakeRelay, RecordingToken


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Use integration tests for network-dependent code."
        )

    monkeypatch.setattr("httpx.AsyncClient.get", block_network)
    monkeypatch.setattr("httpx.AsyncClient.post", block_network)


# ============================================================================
# EXECUTION FIXTURES
# ============================================================================


@pytest.fixture
def relay():
    """Relay that accepts everything and reports every bundle landed."""
    return FakeRelay()


@pytest.fixture
def token():
    return RecordingToken()
