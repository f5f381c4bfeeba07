"""
Tests for the Plan Runner
=========================
Simple-mode semantics: sign everything first, critical first chunk,
best-effort later chunks with linear pacing.
"""

import pytest

from bundle_pipeline.execution.keypair_resolver import build_key_set
from bundle_pipeline.execution.plan_runner import PlanRunner
from bundle_pipeline.shared.execution.execution_result import ErrorKind, PlanMode
from bundle_pipeline.shared.schemas.preparer import PreparedPlan, PreparedStage
from tests.mocks import FakeRelay, RecordingToken, envelope, rejected


def bundles_of(kp, *sizes):
    counter = iter(range(1, 1000))
    return [[envelope(kp, lamports=next(counter)) for _ in range(size)] for size in sizes]


@pytest.fixture
def runner_config(fast_config):
    return fast_config.with_overrides(inter_chunk_delay_sec=0.1)


class TestSimplePlan:

    @pytest.mark.asyncio
    async def test_all_chunks_sent(self, runner_config, token, sender_kp):
        relay = FakeRelay()
        plan = PreparedPlan(bundles=bundles_of(sender_kp, 2, 7), mint="MintAddr")

        result = await PlanRunner(relay, runner_config, cancel=token).run(plan, build_key_set([sender_kp]))

        assert result.success
        assert result.mode == PlanMode.SIMPLE
        assert [len(c) for c in relay.submitted] == [2, 5, 2]
        assert result.success_count == 3
        assert result.mint == "MintAddr"
        assert token.sleeps == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_signing_failure_sends_nothing(self, runner_config, token, sender_kp, bob_kp):
        relay = FakeRelay()
        plan = PreparedPlan(bundles=[[envelope(sender_kp)], [envelope(bob_kp)]])

        result = await PlanRunner(relay, runner_config, cancel=token).run(plan, build_key_set([sender_kp]))

        assert not result.success
        assert result.error_kind == ErrorKind.SIGNING
        assert result.error.startswith("Failed to sign bundle 1: Envelope 1: ")
        assert relay.submitted == []

    @pytest.mark.asyncio
    async def test_first_chunk_failure_fails_plan(self, runner_config, token, sender_kp):
        relay = FakeRelay(fail_forever=True)
        plan = PreparedPlan(bundles=bundles_of(sender_kp, 1, 1))

        result = await PlanRunner(relay, runner_config, cancel=token).run(plan, build_key_set([sender_kp]))

        assert not result.success
        assert result.error_kind == ErrorKind.RELAY_REJECTED
        assert len(result.bundle_results) == 1
        assert result.bundle_results[0].attempts == 3
        # chunk 1 is never attempted
        assert len(relay.submitted) == 3

    @pytest.mark.asyncio
    async def test_later_chunk_failure_is_recorded(self, runner_config, token, sender_kp):
        relay = FakeRelay(submit_script=["first", rejected("slot expired"), "third"])
        plan = PreparedPlan(bundles=bundles_of(sender_kp, 1, 1, 1))

        result = await PlanRunner(relay, runner_config, cancel=token).run(plan, build_key_set([sender_kp]))

        assert result.success
        assert [b.success for b in result.bundle_results] == [True, False, True]
        assert result.bundle_results[1].error == "slot expired"
        assert result.failure_count == 1
        assert result.relay_ids == ["first", "third"]
        # non-critical chunks get exactly one attempt
        assert len(relay.submitted) == 3

    @pytest.mark.asyncio
    async def test_cancel_stops_later_chunks(self, runner_config, sender_kp):
        token = RecordingToken(cancel_after=1)
        relay = FakeRelay()
        plan = PreparedPlan(bundles=bundles_of(sender_kp, 1, 1, 1))

        result = await PlanRunner(relay, runner_config, cancel=token).run(plan, build_key_set([sender_kp]))

        assert result.success
        assert [b.error_kind for b in result.bundle_results] == [None, ErrorKind.CANCELLED]
        assert len(relay.submitted) == 1

    @pytest.mark.asyncio
    async def test_empty_plan(self, runner_config, token, sender_kp):
        plan = PreparedPlan(bundles=[[]])

        result = await PlanRunner(FakeRelay(), runner_config, cancel=token).run(plan, build_key_set([sender_kp]))

        assert not result.success
        assert result.error_kind == ErrorKind.PREPARER
        assert result.error == "No transactions returned from backend"

    @pytest.mark.asyncio
    async def test_key_selector_uses_global_index(self, fast_config, token, sender_kp, alice_kp):
        config = fast_config.with_overrides(max_bundle_size=1)
        plan = PreparedPlan(bundles=[[envelope(sender_kp), envelope(alice_kp)]])
        selected = []

        def selector(index):
            selected.append(index)
            return [sender_kp] if index == 0 else [alice_kp]

        result = await PlanRunner(FakeRelay(), config, cancel=token).run(plan, build_key_set([]), selector)

        assert result.success
        assert selected == [0, 1]


class TestStagedPlan:

    @pytest.mark.asyncio
    async def test_staged_plan_delegates_to_orchestrator(self, fast_config, token, sender_kp):
        plan = PreparedPlan(
            stages=[
                PreparedStage(name="Create LUT", transactions=[envelope(sender_kp, lamports=1)]),
                PreparedStage(name="Deployment", transactions=[envelope(sender_kp, lamports=2)]),
            ],
            lookupTableAddress="LutAddr",
        )

        result = await PlanRunner(FakeRelay(), fast_config, cancel=token).run(plan, build_key_set([sender_kp]))

        assert result.success
        assert result.mode == PlanMode.STAGED
        assert [s.stage_name for s in result.stage_results] == ["Create LUT", "Deployment"]
        assert result.lookup_table_address == "LutAddr"
