"""
Create
======
Token deployment through `/v2/sol/create`.

One preparer call returns either simple bundles or, for large advanced
deployments, an ordered list of stages. A `mintPrivateKey` in the response
joins the signing key set as an additional key; an unreadable one is
logged and skipped, and the deployment continues without it.
"""

from typing import Sequence

from bundle_pipeline.config.constants import Endpoints
from bundle_pipeline.execution.keypair_resolver import build_key_set, resolve_keypair
from bundle_pipeline.operations.context import OperationContext, resolve_wallets
from bundle_pipeline.operations.models import CreateConfig, FundedWallet
from bundle_pipeline.shared.execution.execution_result import (
    CreateResult,
    ErrorKind,
    PlanMode,
)
from bundle_pipeline.shared.system.logging import Logger


def failed_create(kind: ErrorKind, detail: str, **kwargs) -> CreateResult:
    return CreateResult(success=False, error=detail, error_kind=kind, **kwargs)


async def run_create(
    ctx: OperationContext,
    wallets: Sequence[FundedWallet],
    config: CreateConfig,
) -> CreateResult:
    wallet_keys = resolve_wallets(wallets, "wallet")
    if not wallet_keys.ok:
        return failed_create(wallet_keys.kind, wallet_keys.detail)

    if ctx.cancel.cancelled:
        return failed_create(ErrorKind.CANCELLED, ctx.cancel.reason)

    Logger.info(f"[CREATE] {config.token.symbol} on {config.platform} with {len(wallets)} wallet(s)")
    prepared = await ctx.preparer.prepare(Endpoints.SOL_CREATE, config.to_request_dict(list(wallets)))
    if not prepared.ok:
        return failed_create(prepared.kind, prepared.detail)

    plan = prepared.value
    identifiers = {
        "mint_address": plan.mint,
        "pool_id": plan.pool_id,
        "lookup_table_address": plan.lookup_table_address,
    }

    additional_keys = []
    if plan.mint_private_key:
        mint_key = resolve_keypair(plan.mint_private_key, "mint")
        if mint_key.ok:
            additional_keys.append(mint_key.value)
        else:
            Logger.warning(f"[CREATE] Ignoring mint key from preparer: {mint_key.detail}")

    key_set = build_key_set(wallet_keys.value, additional_keys)
    result = await ctx.runner.run(plan, key_set)

    if result.success:
        Logger.success(f"[CREATE] Deployed {plan.mint or config.token.symbol}")
        return CreateResult(success=True, results=[result], **identifiers)

    error = result.error
    if result.mode == PlanMode.SIMPLE and result.bundle_results:
        error = f"First bundle failed: {result.error}"
    Logger.error(f"[CREATE] {error}")
    return CreateResult(
        success=False,
        results=[result],
        error=error,
        error_kind=result.error_kind,
        **identifiers,
    )
