"""
Operation Context
=================
Per-invocation wiring shared by the distribute, mix, create and
consolidate operations.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from solders.keypair import Keypair

from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.execution.cancellation import CancellationToken
from bundle_pipeline.execution.keypair_resolver import SigningKeySet, resolve_keypair
from bundle_pipeline.execution.plan_runner import PlanRunner
from bundle_pipeline.execution.signature_completer import KeySelector
from bundle_pipeline.operations.models import Wallet
from bundle_pipeline.shared.execution.execution_result import (
    Err,
    ErrorKind,
    Ok,
    PlanResult,
    Result,
    failed_plan,
)
from bundle_pipeline.shared.infrastructure.preparer_client import PreparerClient


@dataclass
class OperationContext:
    """Everything one operation run needs; built fresh by the facade per call."""
    config: PipelineConfig
    preparer: PreparerClient
    runner: PlanRunner
    cancel: CancellationToken

    async def prepare_and_run(
        self,
        path: str,
        payload: Dict[str, Any],
        key_set: SigningKeySet,
        key_selector: Optional[KeySelector] = None,
    ) -> PlanResult:
        """One preparer call followed by execution of the returned plan."""
        if self.cancel.cancelled:
            return failed_plan(ErrorKind.CANCELLED, self.cancel.reason)

        prepared = await self.preparer.prepare(path, payload)
        if not prepared.ok:
            return failed_plan(prepared.kind, prepared.detail)

        return await self.runner.run(prepared.value, key_set, key_selector)


def resolve_wallet(wallet: Wallet, label: str) -> Result[Keypair]:
    """Resolve a wallet's key and check it controls the declared address."""
    resolved = resolve_keypair(wallet.private_key, label)
    if not resolved.ok:
        return resolved

    keypair = resolved.value
    if wallet.address and str(keypair.pubkey()) != wallet.address:
        return Err(ErrorKind.KEY, f"Private key for {label} does not match address {wallet.address}")
    return Ok(keypair)


def resolve_wallets(wallets: Sequence[Wallet], label: str) -> Result[List[Keypair]]:
    keypairs = []
    for index, wallet in enumerate(wallets):
        resolved = resolve_wallet(wallet, f"{label} #{index + 1}")
        if not resolved.ok:
            return resolved
        keypairs.append(resolved.value)
    return Ok(keypairs)
