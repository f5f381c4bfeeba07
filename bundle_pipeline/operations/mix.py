"""
Mix
===
Routes base currency from a sender to each recipient through the
preparer's intermediate wallets, one recipient per preparer call.

The returned transaction pair has a fixed signing contract: envelope 0 is
the sender's deposit, envelope 1 the recipient's withdrawal. Any further
envelope may be signed by either party.
"""

from typing import Any, Dict, Sequence

from solders.keypair import Keypair

from bundle_pipeline.config.constants import SOL, BaseCurrency, Endpoints
from bundle_pipeline.execution.keypair_resolver import SigningKeySet, build_key_set
from bundle_pipeline.execution.signature_completer import KeySelector
from bundle_pipeline.operations.context import OperationContext, resolve_wallet
from bundle_pipeline.operations.models import FundedWallet, Wallet
from bundle_pipeline.shared.execution.execution_result import (
    ErrorKind,
    OperationResult,
    failed_operation,
)
from bundle_pipeline.shared.system.logging import Logger


def mix_endpoint(currency: BaseCurrency) -> str:
    return Endpoints.SOL_MIXER if currency.is_native else Endpoints.TOKEN_MIXER


def mix_request(sender_address: str, recipient: FundedWallet, currency: BaseCurrency = SOL) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "sender": sender_address,
        "recipients": [recipient.to_request_dict()],
    }
    if not currency.is_native:
        body["tokenMint"] = currency.mint
    return body


def mix_key_selector(sender_key: Keypair, recipient_key: Keypair) -> KeySelector:
    """Positional signing: 0 -> sender, 1 -> recipient, rest -> either."""
    sender_only = build_key_set([sender_key])
    recipient_only = build_key_set([recipient_key])
    both = build_key_set([sender_key, recipient_key])

    def select(index: int) -> SigningKeySet:
        if index == 0:
            return sender_only
        if index == 1:
            return recipient_only
        return both

    return select


async def run_mix(
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

    path = mix_endpoint(currency)
    Logger.info(f"[MIX] {len(recipients)} recipient(s), {currency.symbol}")

    results = []
    for index, recipient in enumerate(recipients):
        label = f"Mixing to recipient {index + 1} ({recipient.address})"

        if index > 0 and not await ctx.cancel.sleep(ctx.config.inter_recipient_delay_sec):
            return failed_operation(ErrorKind.CANCELLED, f"{label} failed: {ctx.cancel.reason}", results)

        recipient_key = resolve_wallet(recipient, f"recipient #{index + 1}")
        if not recipient_key.ok:
            return failed_operation(recipient_key.kind, f"{label} failed: {recipient_key.detail}", results)

        plan = await ctx.prepare_and_run(
            path,
            mix_request(sender.address, recipient, currency),
            build_key_set([sender_key.value, recipient_key.value]),
            key_selector=mix_key_selector(sender_key.value, recipient_key.value),
        )
        if not plan.success:
            Logger.error(f"[MIX] {label} failed: {plan.error}")
            return failed_operation(plan.error_kind, f"{label} failed: {plan.error}", results)

        results.append(plan)
        Logger.success(f"[MIX] Recipient {index + 1}/{len(recipients)} done")

    return OperationResult(success=True, results=results)
