"""
Bundle Pipeline Test Configuration
==================================
Shared fixtures and pytest markers for the test suite.
"""

import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bundle_pipeline.config.settings import PipelineConfig  # noqa: E402
from tests.mocks.mock_envelopes import make_keypair  # noqa: E402


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def fast_config():
    """Config with every pause zeroed and the rate limit out of the way."""
    return PipelineConfig(
        preparer_base_url="http://preparer.test",
        relay_base_url="http://relay.test",
        max_bundles_per_second=1000,
        base_retry_delay_sec=0.0,
        inter_chunk_delay_sec=0.0,
        inter_stage_delay_sec=0.0,
        activation_delay_sec=0.0,
        inter_batch_delay_sec=0.0,
        inter_recipient_delay_sec=0.0,
        confirmation_timeout_sec=0.5,
        poll_interval_sec=0.1,
    )


@pytest.fixture
def sender_kp():
    return make_keypair(1)


@pytest.fixture
def alice_kp():
    return make_keypair(2)


@pytest.fixture
def bob_kp():
    return make_keypair(3)


@pytest.fixture
def mint_kp():
    return make_keypair(9)
