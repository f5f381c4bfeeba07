"""
Integration Test Configuration
==============================
Runs the real preparer/relay clients against an in-process
httpx.MockTransport backend. No test here leaves the process.
"""

import pytest

from bundle_pipeline.operations.facade import BundlePipeline
from tests.mocks import MockBackend


@pytest.fixture
def backend():
    return MockBackend()


@pytest.fixture
def pipeline(fast_config, backend):
    """Facade wired to the mock backend with zero pacing."""
    return BundlePipeline(fast_config, http_client=backend.client())
