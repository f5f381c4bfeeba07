"""
Stage Orchestrator
==================
Walks a staged deployment one stage at a time.

Per-stage state machine:

    PENDING -> SIGNING -> SENDING -> [CONFIRMING -> [ACTIVATING]] -> DONE
                  |          |             |              |
                  +----------+-------------+--------------+--> FAILED
    (any state, when the cancellation token fires)        -----> CANCELLED

CONFIRMING runs only for stages with `requires_confirmation`; ACTIVATING
only when `wait_for_activation` is also set. The first failure ends the
run, so the returned list holds one StageResult per attempted stage.

Usage:
    orchestrator = StageOrchestrator(executor, poller, config)
    results = await orchestrator.run(plan.stages, key_set)
"""

from enum import Enum
from typing import Callable, List, Optional, Sequence

from bundle_pipeline.config.constants import DEPLOYMENT_STAGE_NAME
from bundle_pipeline.config.settings import PipelineConfig, UnknownConfirmationPolicy
from bundle_pipeline.execution.activation import ActivationStrategy, FixedDelayActivation
from bundle_pipeline.execution.bundle_splitter import split_large_bundles
from bundle_pipeline.execution.cancellation import CancellationToken, NeverCancelled
from bundle_pipeline.execution.confirmation_poller import ConfirmationPoller
from bundle_pipeline.execution.keypair_resolver import SigningKeySet
from bundle_pipeline.execution.retry_executor import RetryExecutor
from bundle_pipeline.execution.signature_completer import complete_chunk
from bundle_pipeline.shared.execution.execution_result import (
    ConfirmationOutcome,
    ErrorKind,
    StageResult,
)
from bundle_pipeline.shared.schemas.preparer import PreparedStage
from bundle_pipeline.shared.system.logging import Logger


class StageState(Enum):
    PENDING = "PENDING"
    SIGNING = "SIGNING"
    SENDING = "SENDING"
    CONFIRMING = "CONFIRMING"
    ACTIVATING = "ACTIVATING"
    DONE = "DONE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def terminal(self) -> bool:
        return self in (StageState.DONE, StageState.FAILED, StageState.CANCELLED)


TransitionHook = Callable[[PreparedStage, StageState], None]


class StageOrchestrator:

    def __init__(
        self,
        executor: RetryExecutor,
        poller: ConfirmationPoller,
        config: PipelineConfig,
        activation: Optional[ActivationStrategy] = None,
        cancel: Optional[CancellationToken] = None,
        on_transition: Optional[TransitionHook] = None,
    ):
        self.executor = executor
        self.poller = poller
        self.config = config
        self.activation = activation or FixedDelayActivation(config.activation_delay_sec)
        self.cancel = cancel or NeverCancelled()
        self.on_transition = on_transition

    def _transition(self, index: int, stage: PreparedStage, state: StageState) -> None:
        Logger.debug(f"[STAGE] {index + 1}:{stage.name} -> {state.value}")
        if self.on_transition is None:
            return
        try:
            self.on_transition(stage, state)
        except Exception as e:
            Logger.error(f"[STAGE] on_transition hook raised {type(e).__name__}: {e}")

    def _fail(
        self,
        index: int,
        stage: PreparedStage,
        error: str,
        kind: ErrorKind,
        relay_id: Optional[str] = None,
        confirmation: Optional[ConfirmationOutcome] = None,
    ) -> StageResult:
        state = StageState.CANCELLED if kind == ErrorKind.CANCELLED else StageState.FAILED
        self._transition(index, stage, state)
        Logger.error(f"[STAGE] {error}")
        return StageResult(
            stage_index=index,
            stage_name=stage.name,
            success=False,
            relay_id=relay_id,
            error=error,
            error_kind=kind,
            confirmation=confirmation,
        )

    async def run(self, stages: Sequence[PreparedStage], key_set: SigningKeySet) -> List[StageResult]:
        results: List[StageResult] = []

        for index, stage in enumerate(stages):
            result = await self._run_stage(index, stage, key_set)
            results.append(result)
            if not result.success:
                break

            if index < len(stages) - 1:
                if not await self.cancel.sleep(self.config.inter_stage_delay_sec):
                    results.append(
                        self._fail(index + 1, stages[index + 1], self.cancel.reason, ErrorKind.CANCELLED)
                    )
                    break

        return results

    async def _run_stage(self, index: int, stage: PreparedStage, key_set: SigningKeySet) -> StageResult:
        self._transition(index, stage, StageState.PENDING)
        Logger.info(f"[STAGE] {index + 1}: {stage.name} ({len(stage.transactions)} tx)")

        if self.cancel.cancelled:
            return self._fail(index, stage, self.cancel.reason, ErrorKind.CANCELLED)

        # SIGNING
        self._transition(index, stage, StageState.SIGNING)
        is_first = index == 0 or stage.name == DEPLOYMENT_STAGE_NAME
        signed = complete_chunk(stage.transactions, key_set, is_first_chunk=is_first)
        if not signed.ok:
            return self._fail(
                index, stage, f"Failed to sign transactions for stage: {stage.name} - {signed.detail}", signed.kind
            )

        # SENDING (every piece of a stage is critical)
        if self.cancel.cancelled:
            return self._fail(index, stage, self.cancel.reason, ErrorKind.CANCELLED)
        self._transition(index, stage, StageState.SENDING)

        relay_id = None
        for chunk in split_large_bundles([signed.value], self.config.max_bundle_size):
            sent = await self.executor.send_with_retry(chunk, label=f"bundle for stage: {stage.name}")
            if not sent.ok:
                return self._fail(index, stage, sent.detail, sent.kind, relay_id=relay_id)
            relay_id = sent.value.relay_id

        # CONFIRMING
        confirmation = None
        if stage.requires_confirmation:
            self._transition(index, stage, StageState.CONFIRMING)
            confirmation = await self.poller.wait(relay_id)

            if confirmation == ConfirmationOutcome.CANCELLED:
                return self._fail(index, stage, self.cancel.reason, ErrorKind.CANCELLED, relay_id, confirmation)
            if confirmation == ConfirmationOutcome.FAILED:
                return self._fail(
                    index, stage, f"Stage {stage.name} failed to confirm",
                    ErrorKind.CONFIRMATION_FAILED, relay_id, confirmation,
                )
            if confirmation == ConfirmationOutcome.UNKNOWN:
                if self.config.unknown_confirmation_policy == UnknownConfirmationPolicy.FAIL:
                    return self._fail(
                        index, stage, f"Stage {stage.name} confirmation timed out",
                        ErrorKind.CONFIRMATION_UNKNOWN, relay_id, confirmation,
                    )
                Logger.warning(f"[STAGE] {stage.name}: no confirmation verdict, assuming landed")

            # ACTIVATING
            if stage.wait_for_activation:
                self._transition(index, stage, StageState.ACTIVATING)
                activated = await self.activation.wait(self.cancel)
                if not activated.ok:
                    return self._fail(index, stage, activated.detail, activated.kind, relay_id, confirmation)

        self._transition(index, stage, StageState.DONE)
        Logger.success(f"[STAGE] {stage.name} done")
        return StageResult(
            stage_index=index,
            stage_name=stage.name,
            success=True,
            relay_id=relay_id,
            confirmation=confirmation,
        )
