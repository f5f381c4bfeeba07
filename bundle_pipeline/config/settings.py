"""
Pipeline Configuration
======================
One explicit value handed to every client and component.

Nothing reads the environment after construction: build a config once with
`PipelineConfig.from_env()` (which honours a project-root .env file) or
construct it directly in tests.
"""

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from dotenv import load_dotenv

from bundle_pipeline.config.constants import (
    MAX_RECIPIENTS_PER_DISTRIBUTE_BATCH,
    MAX_TRANSACTIONS_PER_BUNDLE,
)


class UnknownConfirmationPolicy(str, Enum):
    """What a stage does when confirmation polling times out silently."""
    ASSUME_LANDED = "assume_landed"
    FAIL = "fail"


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for preparer/relay access, retry, polling and pacing."""

    # Endpoints
    preparer_base_url: str = "http://localhost:8080"
    relay_base_url: Optional[str] = None  # None = same host as the preparer
    request_timeout_sec: float = 30.0

    # Bundling
    max_bundle_size: int = MAX_TRANSACTIONS_PER_BUNDLE
    max_bundles_per_second: int = 2

    # Critical-send retry policy
    max_retry_attempts: int = 50
    max_consecutive_errors: int = 3
    base_retry_delay_sec: float = 0.2
    retry_backoff_factor: float = 1.5
    retry_jitter: Tuple[float, float] = (0.85, 1.15)

    # Pacing
    inter_chunk_delay_sec: float = 0.1  # multiplied by chunk index
    inter_stage_delay_sec: float = 1.0
    activation_delay_sec: float = 5.0
    inter_batch_delay_sec: float = 3.0
    inter_recipient_delay_sec: float = 2.0

    # Confirmation
    confirmation_timeout_sec: float = 30.0
    poll_interval_sec: float = 2.0
    unknown_confirmation_policy: UnknownConfirmationPolicy = UnknownConfirmationPolicy.ASSUME_LANDED

    # Batching
    max_recipients_per_batch: int = MAX_RECIPIENTS_PER_DISTRIBUTE_BATCH

    def __post_init__(self):
        if self.max_bundle_size < 1:
            raise ValueError("max_bundle_size must be >= 1")
        if self.max_retry_attempts < 1 or self.max_consecutive_errors < 1:
            raise ValueError("retry limits must be >= 1")
        low, high = self.retry_jitter
        if low <= 0 or high < low:
            raise ValueError(f"invalid retry_jitter range: {self.retry_jitter}")

    @property
    def preparer_url(self) -> str:
        return self.preparer_base_url.rstrip("/")

    @property
    def relay_url(self) -> str:
        return (self.relay_base_url or self.preparer_base_url).rstrip("/")

    def with_overrides(self, **changes) -> "PipelineConfig":
        """Copy with selected fields replaced (e.g. zero delays in tests)."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "PipelineConfig":
        """
        Build a config from environment variables.

        Args:
            env_file: Optional path to a .env file; defaults to ./.env
        """
        load_dotenv(env_file or os.path.join(os.getcwd(), ".env"))

        defaults = cls()
        policy = os.getenv(
            "BUNDLE_UNKNOWN_CONFIRMATION_POLICY", defaults.unknown_confirmation_policy.value
        )
        return cls(
            preparer_base_url=os.getenv("BUNDLE_PREPARER_URL", defaults.preparer_base_url),
            relay_base_url=os.getenv("BUNDLE_RELAY_URL") or None,
            request_timeout_sec=float(
                os.getenv("BUNDLE_REQUEST_TIMEOUT", defaults.request_timeout_sec)
            ),
            confirmation_timeout_sec=float(
                os.getenv("BUNDLE_CONFIRMATION_TIMEOUT", defaults.confirmation_timeout_sec)
            ),
            unknown_confirmation_policy=UnknownConfirmationPolicy(policy),
        )
