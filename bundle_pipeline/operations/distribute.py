"""
Distribute
==========
Sends base currency from one sender to many recipients.

Recipients go to the preparer in batches of at most
`max_recipients_per_batch` (3); batches run strictly in order with
`inter_batch_delay` between them, and the first failing batch stops the
run. Sender and recipient keys are both available for signing, since
unwrapping paths make recipients co-signers.
"""

from typing import Any, Dict, Sequence

from bundle_pipeline.config.constants import SOL, BaseCurrency, Endpoints
from bundle_pipeline.execution.bundle_splitter import chunked
from bundle_pipeline.execution.keypair_resolver import build_key_set
from bundle_pipeline.operations.context import OperationContext, resolve_wallet, resolve_wallets
from bundle_pipeline.operations.models import FundedWallet, Wallet
from bundle_pipeline.shared.execution.execution_result import (
    ErrorKind,
    OperationResult,
    failed_operation,
)
from bundle_pipeline.shared.system.logging import Logger


def distribute_endpoint(currency: BaseCurrency) -> str:
    return Endpoints.SOL_DISTRIBUTE if currency.is_native else Endpoints.TOKEN_DISTRIBUTE


def distribute_request(
    sender_address: str,
    recipients: Sequence[FundedWallet],
    currency: BaseCurrency = SOL,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "sender": sender_address,
        "recipients": [r.to_request_dict() for r in recipients],
    }
    if not currency.is_native:
        body["tokenMint"] = currency.mint
    return body


async def run_distribute(
    ctx: OperationContext,
    sender: Wallet,
    recipients: Sequence[FundedWallet],
    currency: BaseCurrency = SOL,
) -> OperationResult:
    if not recipients:
        return OperationResult(success=True)

    sender_key = resolve_wallet(sender, "sender")
    if not sender_key.ok:
        return failed_operation(sender_key.kind, sender_key.detail)
    recipient_keys = resolve_wallets(recipients, "recipient")
    if not recipient_keys.ok:
        return failed_operation(recipient_keys.kind, recipient_keys.detail)

    key_set = build_key_set([sender_key.value, *recipient_keys.value])
    path = distribute_endpoint(currency)
    batches = chunked(list(recipients), ctx.config.max_recipients_per_batch)

    Logger.info(
        f"[DISTRIBUTE] {len(recipients)} recipient(s) in {len(batches)} batch(es), {currency.symbol}"
    )

    results = []
    for index, batch in enumerate(batches):
        if index > 0 and not await ctx.cancel.sleep(ctx.config.inter_batch_delay_sec):
            return failed_operation(
                ErrorKind.CANCELLED, f"Batch {index + 1} failed: {ctx.cancel.reason}", results
            )

        plan = await ctx.prepare_and_run(path, distribute_request(sender.address, batch, currency), key_set)
        if not plan.success:
            Logger.error(f"[DISTRIBUTE] Batch {index + 1}/{len(batches)} failed: {plan.error}")
            return failed_operation(plan.error_kind, f"Batch {index + 1} failed: {plan.error}", results)

        results.append(plan)
        Logger.success(f"[DISTRIBUTE] Batch {index + 1}/{len(batches)} sent")

    return OperationResult(success=True, results=results)
