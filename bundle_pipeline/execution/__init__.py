"""
Execution Layer
===============
Signing, splitting, submission and stage orchestration for prepared plans.
"""

from bundle_pipeline.execution.activation import (
    ActivationStrategy,
    FixedDelayActivation,
    PollingActivation,
)
from bundle_pipeline.execution.bundle_splitter import chunked, split_large_bundles
from bundle_pipeline.execution.cancellation import CancellationToken
from bundle_pipeline.execution.confirmation_poller import ConfirmationPoller
from bundle_pipeline.execution.envelope import Envelope, EnvelopeEncoding
from bundle_pipeline.execution.keypair_resolver import (
    SigningKeySet,
    build_key_set,
    is_valid_address,
    resolve_keypair,
    resolve_keypairs,
)
from bundle_pipeline.execution.plan_runner import PlanRunner
from bundle_pipeline.execution.retry_executor import RetryExecutor
from bundle_pipeline.execution.signature_completer import complete, complete_chunk
from bundle_pipeline.execution.stage_orchestrator import StageOrchestrator, StageState

__all__ = [
    "ActivationStrategy",
    "CancellationToken",
    "ConfirmationPoller",
    "Envelope",
    "EnvelopeEncoding",
    "FixedDelayActivation",
    "PlanRunner",
    "PollingActivation",
    "RetryExecutor",
    "SigningKeySet",
    "StageOrchestrator",
    "StageState",
    "build_key_set",
    "chunked",
    "complete",
    "complete_chunk",
    "is_valid_address",
    "resolve_keypair",
    "resolve_keypairs",
    "split_large_bundles",
]
