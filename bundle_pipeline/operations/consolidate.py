"""
Consolidate
===========
Sweeps a percentage of each source wallet's balance into one receiver.

The receiver pays fees, so its key and every source key sign.
"""

from typing import Any, Dict, Sequence

from bundle_pipeline.config.constants import Endpoints
from bundle_pipeline.execution.keypair_resolver import build_key_set
from bundle_pipeline.operations.context import OperationContext, resolve_wallet, resolve_wallets
from bundle_pipeline.operations.models import Wallet
from bundle_pipeline.shared.execution.execution_result import OperationResult, failed_operation
from bundle_pipeline.shared.system.logging import Logger


def consolidate_request(sources: Sequence[Wallet], receiver_address: str, percentage: float) -> Dict[str, Any]:
    return {
        "wallets": [w.address for w in sources],
        "receiver": receiver_address,
        "percentage": percentage,
    }


async def run_consolidate(
    ctx: OperationContext,
    sources: Sequence[Wallet],
    receiver: Wallet,
    percentage: float,
) -> OperationResult:
    receiver_key = resolve_wallet(receiver, "receiver")
    if not receiver_key.ok:
        return failed_operation(receiver_key.kind, receiver_key.detail)
    source_keys = resolve_wallets(sources, "source")
    if not source_keys.ok:
        return failed_operation(source_keys.kind, source_keys.detail)

    Logger.info(f"[CONSOLIDATE] {len(sources)} source(s) -> {receiver.address[:8]}... at {percentage}%")

    plan = await ctx.prepare_and_run(
        Endpoints.SOL_CONSOLIDATE,
        consolidate_request(sources, receiver.address, percentage),
        build_key_set([receiver_key.value, *source_keys.value]),
    )
    if not plan.success:
        Logger.error(f"[CONSOLIDATE] {plan.error}")
        return failed_operation(plan.error_kind, plan.error, [plan])

    Logger.success(f"[CONSOLIDATE] {plan.success_count} bundle(s) sent")
    return OperationResult(success=True, results=[plan])
