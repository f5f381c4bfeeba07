"""
Bundle Pipeline Facade
======================
Entry points for distribute, mix, create and consolidate.

Every call gets its own PlanRunner and cancellation token; the preparer
and relay clients (and the relay's rate limiter) are shared by calls made
through the same facade. Nothing raises past this boundary: every outcome
is an OperationResult (or CreateResult) carrying an `error_kind`.

Usage:
    pipeline = BundlePipeline(PipelineConfig.from_env())

    result = await pipeline.execute_distribute(
        sender={"address": "...", "privateKey": "..."},
        recipients=[{"address": "...", "privateKey": "...", "amount": "0.5"}],
    )
    if not result.success:
        print(result.error)
"""

from typing import Any, Optional, Sequence, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from bundle_pipeline.config.constants import SOL, BaseCurrency, get_base_currency
from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.execution.activation import ActivationStrategy
from bundle_pipeline.execution.cancellation import CancellationToken, NeverCancelled
from bundle_pipeline.execution.plan_runner import PlanRunner
from bundle_pipeline.execution.stage_orchestrator import TransitionHook
from bundle_pipeline.operations.consolidate import run_consolidate
from bundle_pipeline.operations.context import OperationContext
from bundle_pipeline.operations.create import failed_create, run_create
from bundle_pipeline.operations.distribute import run_distribute
from bundle_pipeline.operations.mix import run_mix
from bundle_pipeline.operations.models import CreateConfig, FundedWallet, Wallet
from bundle_pipeline.operations.validation import parse_percentage
from bundle_pipeline.shared.execution.execution_result import (
    CreateResult,
    ErrorKind,
    OperationResult,
    failed_operation,
)
from bundle_pipeline.shared.infrastructure.preparer_client import PreparerClient
from bundle_pipeline.shared.infrastructure.relay_client import BundleRelayClient
from bundle_pipeline.shared.system.logging import Logger

M = TypeVar("M", bound=BaseModel)
CurrencyLike = Union[BaseCurrency, str, None]


def _coerce(model: Type[M], value: Any) -> M:
    return value if isinstance(value, model) else model.model_validate(value)


def _currency(value: CurrencyLike) -> BaseCurrency:
    if value is None:
        return SOL
    if isinstance(value, BaseCurrency):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported base currency: {value!r}")
    currency = get_base_currency(value)
    if currency is None:
        raise ValueError(f"Unsupported base currency: {value}")
    return currency


class BundlePipeline:
    """Composes preparer, signing, relay and orchestration per operation."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        preparer: Optional[PreparerClient] = None,
        relay: Optional[BundleRelayClient] = None,
        activation: Optional[ActivationStrategy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or PipelineConfig()
        self.preparer = preparer or PreparerClient(self.config, client=http_client)
        self.relay = relay or BundleRelayClient(self.config, client=http_client)
        self.activation = activation

    def _context(
        self,
        cancel: Optional[CancellationToken],
        on_transition: Optional[TransitionHook],
    ) -> OperationContext:
        token = cancel or NeverCancelled()
        runner = PlanRunner(
            self.relay,
            self.config,
            cancel=token,
            activation=self.activation,
            on_transition=on_transition,
        )
        return OperationContext(config=self.config, preparer=self.preparer, runner=runner, cancel=token)

    # ═══════════════════════════════════════════════════════════════════════
    # ENTRY POINTS
    # ═══════════════════════════════════════════════════════════════════════

    async def execute_distribute(
        self,
        sender: Any,
        recipients: Sequence[Any],
        base_currency: CurrencyLike = None,
        cancel: Optional[CancellationToken] = None,
        on_transition: Optional[TransitionHook] = None,
    ) -> OperationResult:
        Logger.section("Distribute")
        try:
            sender_wallet = _coerce(Wallet, sender)
            recipient_wallets = [_coerce(FundedWallet, r) for r in recipients]
            currency = _currency(base_currency)
        except (ValidationError, ValueError, TypeError) as e:
            return failed_operation(ErrorKind.VALIDATION, f"Invalid distribute input: {e}")

        try:
            return await run_distribute(
                self._context(cancel, on_transition), sender_wallet, recipient_wallets, currency
            )
        except Exception as e:
            Logger.error(f"[DISTRIBUTE] Unexpected error: {type(e).__name__}: {e}")
            return failed_operation(ErrorKind.UNKNOWN, str(e))

    async def execute_mix(
        self,
        sender: Any,
        recipients: Sequence[Any],
        base_currency: CurrencyLike = None,
        cancel: Optional[CancellationToken] = None,
        on_transition: Optional[TransitionHook] = None,
    ) -> OperationResult:
        Logger.section("Mix")
        try:
            sender_wallet = _coerce(Wallet, sender)
            recipient_wallets = [_coerce(FundedWallet, r) for r in recipients]
            currency = _currency(base_currency)
        except (ValidationError, ValueError, TypeError) as e:
            return failed_operation(ErrorKind.VALIDATION, f"Invalid mix input: {e}")

        try:
            return await run_mix(
                self._context(cancel, on_transition), sender_wallet, recipient_wallets, currency
            )
        except Exception as e:
            Logger.error(f"[MIX] Unexpected error: {type(e).__name__}: {e}")
            return failed_operation(ErrorKind.UNKNOWN, str(e))

    async def execute_create(
        self,
        wallets: Sequence[Any],
        create_config: Any,
        cancel: Optional[CancellationToken] = None,
        on_transition: Optional[TransitionHook] = None,
    ) -> CreateResult:
        Logger.section("Create")
        try:
            funded = [_coerce(FundedWallet, w) for w in wallets]
            config = _coerce(CreateConfig, create_config)
        except (ValidationError, ValueError, TypeError) as e:
            return failed_create(ErrorKind.VALIDATION, f"Invalid create input: {e}")

        try:
            return await run_create(self._context(cancel, on_transition), funded, config)
        except Exception as e:
            Logger.error(f"[CREATE] Unexpected error: {type(e).__name__}: {e}")
            return failed_create(ErrorKind.UNKNOWN, str(e))

    async def execute_consolidate(
        self,
        source_wallets: Sequence[Any],
        receiver: Any,
        percentage: float,
        cancel: Optional[CancellationToken] = None,
        on_transition: Optional[TransitionHook] = None,
    ) -> OperationResult:
        Logger.section("Consolidate")
        try:
            sources = [_coerce(Wallet, w) for w in source_wallets]
            receiver_wallet = _coerce(Wallet, receiver)
            percent = parse_percentage(percentage)
            if percent is None:
                raise ValueError(f"Percentage must be between 1 and 100, got {percentage!r}")
        except (ValidationError, ValueError, TypeError) as e:
            return failed_operation(ErrorKind.VALIDATION, f"Invalid consolidate input: {e}")

        try:
            return await run_consolidate(
                self._context(cancel, on_transition), sources, receiver_wallet, percent
            )
        except Exception as e:
            Logger.error(f"[CONSOLIDATE] Unexpected error: {type(e).__name__}: {e}")
            return failed_operation(ErrorKind.UNKNOWN, str(e))
