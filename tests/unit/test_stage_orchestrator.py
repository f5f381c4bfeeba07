"""
Tests for Stage Orchestration
=============================
Staged deployments: ordering, confirmation, activation and the
per-stage state machine.
"""

from typing import List, Tuple

import pytest

from bundle_pipeline.config.settings import UnknownConfirmationPolicy
from bundle_pipeline.execution.confirmation_poller import ConfirmationPoller
from bundle_pipeline.execution.keypair_resolver import build_key_set
from bundle_pipeline.execution.retry_executor import RetryExecutor
from bundle_pipeline.execution.stage_orchestrator import StageOrchestrator, StageState
from bundle_pipeline.shared.execution.execution_result import ConfirmationOutcome, ErrorKind
from bundle_pipeline.shared.schemas.preparer import PreparedStage
from tests.mocks import FakeRelay, RecordingToken, envelope
from tests.mocks.mock_envelopes import decode


def stage(name, txs, confirm=False, activate=False):
    return PreparedStage(
        name=name,
        transactions=txs,
        requires_confirmation=confirm,
        wait_for_activation=activate,
    )


@pytest.fixture
def stage_config(fast_config):
    return fast_config.with_overrides(
        activation_delay_sec=5.0,
        inter_stage_delay_sec=1.0,
        confirmation_timeout_sec=3.0,
        poll_interval_sec=1.0,
    )


@pytest.fixture
def make_orchestrator(stage_config, token):
    def _make(relay, config=None, cancel=None, on_transition=None):
        config = config or stage_config
        cancel = cancel or token
        executor = RetryExecutor(relay, config, cancel=cancel)
        poller = ConfirmationPoller(relay, config, cancel=cancel, clock=lambda: 0.0)
        return StageOrchestrator(executor, poller, config, cancel=cancel, on_transition=on_transition)
    return _make


@pytest.fixture
def keys(sender_kp, alice_kp):
    return build_key_set([sender_kp, alice_kp])


class TestStageOrdering:
    """Stages run strictly in order, one result per attempted stage."""

    @pytest.mark.asyncio
    async def test_all_stages_succeed_in_order(self, make_orchestrator, keys, sender_kp, token):
        relay = FakeRelay()
        stages = [stage(f"Stage {i}", [envelope(sender_kp, lamports=i + 1)]) for i in range(3)]

        results = await make_orchestrator(relay).run(stages, keys)

        assert [r.stage_index for r in results] == [0, 1, 2]
        assert all(r.success for r in results)
        assert [r.relay_id for r in results] == ["relay-1", "relay-2", "relay-3"]
        sent_messages = [decode(chunk[0]).message for chunk in relay.submitted]
        assert sent_messages == [decode(s.transactions[0]).message for s in stages]
        # inter-stage pause between stages, none after the last
        assert token.sleeps == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self, make_orchestrator, keys, sender_kp):
        relay = FakeRelay(statuses=["failed"])
        stages = [
            stage("Create LUT", [envelope(sender_kp, lamports=1)], confirm=True),
            stage("Deployment", [envelope(sender_kp, lamports=2)]),
        ]

        results = await make_orchestrator(relay).run(stages, keys)

        assert len(results) == 1
        assert not results[0].success
        assert results[0].error == "Stage Create LUT failed to confirm"
        assert results[0].error_kind == ErrorKind.CONFIRMATION_FAILED
        assert len(relay.submitted) == 1

    @pytest.mark.asyncio
    async def test_oversized_stage_is_split(self, make_orchestrator, keys, sender_kp):
        relay = FakeRelay()
        txs = [envelope(sender_kp, lamports=n) for n in range(1, 8)]

        results = await make_orchestrator(relay).run([stage("Buys", txs)], keys)

        assert [len(chunk) for chunk in relay.submitted] == [5, 2]
        assert results[0].relay_id == "relay-2"


class TestConfirmationAndActivation:

    @pytest.mark.asyncio
    async def test_lookup_table_stage_waits_for_activation(self, make_orchestrator, keys, sender_kp, token):
        relay = FakeRelay(statuses=["landed"])
        stages = [stage("Create LUT", [envelope(sender_kp)], confirm=True, activate=True)]

        results = await make_orchestrator(relay).run(stages, keys)

        assert results[0].success
        assert results[0].confirmation == ConfirmationOutcome.LANDED
        assert any(delay >= 5.0 for delay in token.sleeps)

    @pytest.mark.asyncio
    async def test_activation_wait_sits_between_stage_two_and_three(self, make_orchestrator, keys, sender_kp):
        log: List[Tuple[str, object]] = []

        class LoggingRelay(FakeRelay):
            async def submit(self, transactions):
                log.append(("submit", len(self.submitted) + 1))
                return await super().submit(transactions)

        class LoggingToken(RecordingToken):
            async def sleep(self, delay):
                log.append(("sleep", delay))
                return await super().sleep(delay)

        stages = [
            stage("Create LUT", [envelope(sender_kp, lamports=1)], confirm=True),
            stage("Extend LUT", [envelope(sender_kp, lamports=2)], confirm=True, activate=True),
            stage("Deployment", [envelope(sender_kp, lamports=3)]),
        ]

        results = await make_orchestrator(LoggingRelay(), cancel=LoggingToken()).run(stages, keys)

        assert all(r.success for r in results)
        second, third = log.index(("submit", 2)), log.index(("submit", 3))
        activation = [i for i, (kind, value) in enumerate(log) if kind == "sleep" and value >= 5.0]
        assert len(activation) == 1
        assert second < activation[0] < third

    @pytest.mark.asyncio
    async def test_activation_skipped_without_confirmation(self, make_orchestrator, keys, sender_kp, token):
        stages = [stage("Create LUT", [envelope(sender_kp)], confirm=False, activate=True)]

        results = await make_orchestrator(FakeRelay()).run(stages, keys)

        assert results[0].success
        assert token.sleeps == []

    @pytest.mark.asyncio
    async def test_unknown_assumed_landed_by_default(self, make_orchestrator, keys, sender_kp):
        relay = FakeRelay(default_status="pending")
        stages = [stage("Extend LUT", [envelope(sender_kp)], confirm=True)]

        results = await make_orchestrator(relay).run(stages, keys)

        assert results[0].success
        assert results[0].confirmation == ConfirmationOutcome.UNKNOWN

    @pytest.mark.asyncio
    async def test_unknown_fails_under_strict_policy(self, make_orchestrator, stage_config, keys, sender_kp):
        config = stage_config.with_overrides(unknown_confirmation_policy=UnknownConfirmationPolicy.FAIL)
        relay = FakeRelay(default_status="pending")
        stages = [
            stage("Extend LUT", [envelope(sender_kp, lamports=1)], confirm=True),
            stage("Deployment", [envelope(sender_kp, lamports=2)]),
        ]

        results = await make_orchestrator(relay, config=config).run(stages, keys)

        assert len(results) == 1
        assert results[0].error_kind == ErrorKind.CONFIRMATION_UNKNOWN
        assert results[0].error == "Stage Extend LUT confirmation timed out"


class TestStageSigning:

    @pytest.mark.asyncio
    async def test_signing_failure_sends_nothing(self, make_orchestrator, keys, sender_kp, bob_kp):
        relay = FakeRelay()
        stages = [stage("Deployment", [envelope(sender_kp, [bob_kp])])]

        results = await make_orchestrator(relay).run(stages, keys)

        assert not results[0].success
        assert results[0].error_kind == ErrorKind.SIGNING
        assert results[0].error.startswith("Failed to sign transactions for stage: Deployment - ")
        assert relay.submitted == []

    @pytest.mark.asyncio
    async def test_presigned_deployment_keeps_fee_payer_signature(
        self, make_orchestrator, sender_kp, alice_kp, bob_kp
    ):
        # bob stands in for the preparer's ephemeral fee payer
        relay = FakeRelay()
        tx = envelope(bob_kp, [sender_kp], presigned=[bob_kp])
        stages = [
            stage("Create LUT", [envelope(sender_kp, lamports=1)]),
            stage("Deployment", [tx]),
        ]

        results = await make_orchestrator(relay).run(stages, build_key_set([sender_kp, alice_kp]))

        assert all(r.success for r in results)
        assert decode(relay.submitted[1][0]).signatures[0] == decode(tx).signatures[0]


class TestTransitions:

    @pytest.mark.asyncio
    async def test_hook_sees_every_state(self, make_orchestrator, keys, sender_kp):
        seen: List[Tuple[str, StageState]] = []
        relay = FakeRelay(statuses=["landed"])
        stages = [stage("Create LUT", [envelope(sender_kp)], confirm=True, activate=True)]

        await make_orchestrator(relay, on_transition=lambda s, state: seen.append((s.name, state))).run(
            stages, keys
        )

        assert [state for _, state in seen] == [
            StageState.PENDING,
            StageState.SIGNING,
            StageState.SENDING,
            StageState.CONFIRMING,
            StageState.ACTIVATING,
            StageState.DONE,
        ]
        assert seen[-1][1].terminal

    @pytest.mark.asyncio
    async def test_hook_errors_do_not_abort(self, make_orchestrator, keys, sender_kp):
        def broken_hook(stage, state):
            raise RuntimeError("listener bug")

        results = await make_orchestrator(FakeRelay(), on_transition=broken_hook).run(
            [stage("Deployment", [envelope(sender_kp)])], keys
        )

        assert results[0].success

    @pytest.mark.asyncio
    async def test_cancel_between_stages(self, make_orchestrator, keys, sender_kp):
        token = RecordingToken(cancel_after=1)
        relay = FakeRelay()
        stages = [stage(f"Stage {i}", [envelope(sender_kp, lamports=i + 1)]) for i in range(3)]

        results = await make_orchestrator(relay, cancel=token).run(stages, keys)

        assert [r.success for r in results] == [True, False]
        assert results[1].stage_index == 1
        assert results[1].error_kind == ErrorKind.CANCELLED
        assert len(relay.submitted) == 1
