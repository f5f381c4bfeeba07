"""
Plan Runner
===========
Executes one prepared plan, simple or staged.

Simple plans:
1. Split every bundle into relay-sized chunks
2. Sign all chunks (any signing failure aborts before anything is sent)
3. Send chunk 0 under the critical retry policy
4. Send chunk i > 0 once, after `inter_chunk_delay * i`
Success means chunk 0 was accepted; later failures show up in the counts.

Staged plans go to StageOrchestrator.
"""

from typing import List, Optional

from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.execution.activation import ActivationStrategy
from bundle_pipeline.execution.bundle_splitter import split_large_bundles
from bundle_pipeline.execution.cancellation import CancellationToken, NeverCancelled
from bundle_pipeline.execution.confirmation_poller import ConfirmationPoller
from bundle_pipeline.execution.keypair_resolver import SigningKeySet
from bundle_pipeline.execution.retry_executor import RetryExecutor
from bundle_pipeline.execution.signature_completer import KeySelector, complete_chunk
from bundle_pipeline.execution.stage_orchestrator import StageOrchestrator, TransitionHook
from bundle_pipeline.shared.execution.execution_result import (
    BundleResult,
    ErrorKind,
    PlanMode,
    PlanResult,
    failed_plan,
)
from bundle_pipeline.shared.infrastructure.relay_client import BundleRelayClient
from bundle_pipeline.shared.schemas.preparer import PreparedPlan
from bundle_pipeline.shared.system.logging import Logger


class PlanRunner:
    """
    Usage:
        runner = PlanRunner(relay, config, cancel=token)
        result = await runner.run(plan, key_set)
    """

    def __init__(
        self,
        relay: BundleRelayClient,
        config: PipelineConfig,
        cancel: Optional[CancellationToken] = None,
        activation: Optional[ActivationStrategy] = None,
        on_transition: Optional[TransitionHook] = None,
        executor: Optional[RetryExecutor] = None,
        poller: Optional[ConfirmationPoller] = None,
    ):
        self.config = config
        self.cancel = cancel or NeverCancelled()
        self.executor = executor or RetryExecutor(relay, config, cancel=self.cancel)
        self.poller = poller or ConfirmationPoller(relay, config, cancel=self.cancel)
        self.orchestrator = StageOrchestrator(
            self.executor,
            self.poller,
            config,
            activation=activation,
            cancel=self.cancel,
            on_transition=on_transition,
        )

    async def run(
        self,
        plan: PreparedPlan,
        key_set: SigningKeySet,
        key_selector: Optional[KeySelector] = None,
    ) -> PlanResult:
        metadata = {
            "mint": plan.mint,
            "pool_id": plan.pool_id,
            "lookup_table_address": plan.lookup_table_address,
        }

        if plan.mode == PlanMode.STAGED:
            return await self._run_staged(plan, key_set, metadata)
        return await self._run_simple(plan, key_set, key_selector, metadata)

    # =========================================================================
    # STAGED
    # =========================================================================

    async def _run_staged(self, plan: PreparedPlan, key_set: SigningKeySet, metadata: dict) -> PlanResult:
        Logger.info(f"[PIPELINE] Staged plan: {len(plan.stages)} stage(s)")
        stage_results = await self.orchestrator.run(plan.stages, key_set)

        failed = next((r for r in stage_results if not r.success), None)
        return PlanResult(
            success=failed is None and len(stage_results) == len(plan.stages),
            mode=PlanMode.STAGED,
            stage_results=stage_results,
            error=failed.error if failed else None,
            error_kind=failed.error_kind if failed else None,
            **metadata,
        )

    # =========================================================================
    # SIMPLE
    # =========================================================================

    async def _run_simple(
        self,
        plan: PreparedPlan,
        key_set: SigningKeySet,
        key_selector: Optional[KeySelector],
        metadata: dict,
    ) -> PlanResult:
        chunks = split_large_bundles(plan.bundles, self.config.max_bundle_size)
        if not chunks:
            return failed_plan(ErrorKind.PREPARER, "No transactions returned from backend", **metadata)

        # Sign everything before the first send
        signed_chunks: List[List[str]] = []
        offset = 0
        for index, chunk in enumerate(chunks):
            signed = complete_chunk(
                chunk, key_set, is_first_chunk=index == 0, key_selector=key_selector, start_index=offset
            )
            if not signed.ok:
                Logger.error(f"[SIGNER] Bundle {index}: {signed.detail}")
                return failed_plan(signed.kind, f"Failed to sign bundle {index}: {signed.detail}", **metadata)
            signed_chunks.append(signed.value)
            offset += len(chunk)

        Logger.info(f"[PIPELINE] Simple plan: {len(signed_chunks)} bundle(s), {offset} transaction(s)")

        results: List[BundleResult] = []

        first = await self.executor.send_with_retry(signed_chunks[0])
        if not first.ok:
            results.append(BundleResult(
                bundle_index=0,
                success=False,
                error=first.detail,
                error_kind=first.kind,
                attempts=self.executor.last_attempts,
            ))
            return PlanResult(
                success=False,
                bundle_results=results,
                error=first.detail,
                error_kind=first.kind,
                **metadata,
            )

        receipt = first.value
        results.append(BundleResult(
            bundle_index=0,
            success=True,
            relay_id=receipt.relay_id,
            attempts=receipt.attempts,
            raw=receipt.raw,
        ))

        for index in range(1, len(signed_chunks)):
            if not await self.cancel.sleep(self.config.inter_chunk_delay_sec * index):
                results.append(BundleResult(
                    bundle_index=index,
                    success=False,
                    error=self.cancel.reason,
                    error_kind=ErrorKind.CANCELLED,
                ))
                break

            sent = await self.executor.send_once(signed_chunks[index])
            if sent.ok:
                results.append(BundleResult(
                    bundle_index=index,
                    success=True,
                    relay_id=sent.value.relay_id,
                    attempts=1,
                    raw=sent.value.raw,
                ))
            else:
                Logger.warning(f"[PIPELINE] Bundle {index} failed: {sent.detail}")
                results.append(BundleResult(
                    bundle_index=index,
                    success=False,
                    error=sent.detail,
                    error_kind=sent.kind,
                    attempts=0 if sent.kind == ErrorKind.CANCELLED else 1,
                ))

        result = PlanResult(success=True, bundle_results=results, **metadata)
        Logger.info(
            f"[PIPELINE] Sent {result.success_count}/{len(signed_chunks)} bundle(s)"
            + (f", {result.failure_count} failed" if result.failure_count else "")
        )
        return result
