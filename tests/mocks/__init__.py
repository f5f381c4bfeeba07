"""
Bundle Pipeline Test Mocks
==========================
Reusable mocks for isolated testing.
"""

from tests.mocks.mock_backend import MockBackend
from tests.mocks.mock_envelopes import (
    all_signatures_valid,
    envelope,
    make_keypair,
    signer_slots,
)
from tests.mocks.mock_relay import FakeRelay, RecordingToken, rejected, transient

__all__ = [
    "FakeRelay",
    "MockBackend",
    "RecordingToken",
    "all_signatures_valid",
    "envelope",
    "make_keypair",
    "rejected",
    "signer_slots",
    "transient",
]
