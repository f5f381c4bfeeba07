"""
Input Validation
================
Pure pre-checks run before any preparer call.

No I/O: balances are supplied by the caller. Every check returns a
ValidationResult; nothing raises.

Usage:
    check = validate_distribution_inputs(sender, recipients, sender_balance=2.5)
    if not check.valid:
        Logger.warning(f"[DISTRIBUTE] {check.error}")
"""

import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from bundle_pipeline.config.constants import MIX_FEE_ESTIMATE, Platform, max_wallets_for
from bundle_pipeline.execution.keypair_resolver import is_valid_address
from bundle_pipeline.operations.models import CreateConfig, FundedWallet, Wallet


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


VALID = ValidationResult(valid=True)


def _invalid(error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error)


def parse_amount(value: Union[str, float, int, None]) -> Optional[float]:
    """Positive finite float, or None."""
    if value is None or value == "":
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        return None
    return amount


def parse_percentage(value: Union[str, float, int, None]) -> Optional[float]:
    """Percentage in (0, 100], or None."""
    percentage = parse_amount(value)
    if percentage is None or percentage > 100:
        return None
    return percentage


def format_amount(value: float) -> str:
    """Human form of an amount: at most 9 decimals, no trailing zeros."""
    text = f"{value:.9f}".rstrip("0").rstrip(".")
    return text or "0"


def _insufficient(needed: float, balance: float, symbol: str) -> ValidationResult:
    return _invalid(
        f"Insufficient balance. Need at least {format_amount(needed)} {symbol}, "
        f"but have {format_amount(balance)} {symbol}"
    )


def _check_sender(sender: Wallet) -> Optional[ValidationResult]:
    if not sender.address or not sender.private_key:
        return _invalid("Invalid sender wallet")
    if not is_valid_address(sender.address):
        return _invalid(f"Invalid sender address: {sender.address}")
    return None


def _check_recipient(wallet: FundedWallet) -> Optional[ValidationResult]:
    if not wallet.address or not wallet.private_key or wallet.amount in ("", None):
        return _invalid("Invalid recipient wallet data")
    if not is_valid_address(wallet.address):
        return _invalid(f"Invalid recipient address: {wallet.address}")
    if parse_amount(wallet.amount) is None:
        return _invalid(f"Invalid amount: {wallet.amount}")
    return None


def _check_recipients(recipients: Sequence[FundedWallet]) -> Optional[ValidationResult]:
    if not recipients:
        return _invalid("No recipient wallets")
    for wallet in recipients:
        failure = _check_recipient(wallet)
        if failure:
            return failure
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# DISTRIBUTE / MIX
# ═══════════════════════════════════════════════════════════════════════════════

def validate_distribution_inputs(
    sender: Wallet,
    recipients: Sequence[FundedWallet],
    sender_balance: float,
    symbol: str = "SOL",
) -> ValidationResult:
    """Total outflow must not exceed the sender's balance (no fee headroom)."""
    failure = _check_sender(sender) or _check_recipients(recipients)
    if failure:
        return failure

    total = sum(parse_amount(w.amount) for w in recipients)
    if total > sender_balance:
        return _insufficient(total, sender_balance, symbol)
    return VALID


def validate_mixing_inputs(
    sender: Wallet,
    recipients: Sequence[FundedWallet],
    sender_balance: float,
    symbol: str = "SOL",
) -> ValidationResult:
    """Like distribution, plus MIX_FEE_ESTIMATE per recipient."""
    failure = _check_sender(sender) or _check_recipients(recipients)
    if failure:
        return failure

    needed = sum(parse_amount(w.amount) for w in recipients) + MIX_FEE_ESTIMATE * len(recipients)
    if needed > sender_balance:
        return _insufficient(needed, sender_balance, symbol)
    return VALID


def validate_single_mixing_inputs(
    sender: Wallet,
    recipient: FundedWallet,
    sender_balance: float,
    symbol: str = "SOL",
) -> ValidationResult:
    failure = _check_sender(sender) or _check_recipient(recipient)
    if failure:
        return failure

    needed = parse_amount(recipient.amount) + MIX_FEE_ESTIMATE
    if needed > sender_balance:
        return _insufficient(needed, sender_balance, symbol)
    return VALID


# ═══════════════════════════════════════════════════════════════════════════════
# CREATE
# ═══════════════════════════════════════════════════════════════════════════════

def validate_create_inputs(
    wallets: Sequence[FundedWallet],
    config: CreateConfig,
    wallet_balances: Mapping[str, float],
) -> ValidationResult:
    platforms = {p.value for p in Platform}
    if config.platform not in platforms:
        return _invalid("Invalid platform")

    token = config.token
    if not token.name or not token.symbol or not token.image_url:
        return _invalid("Token name, symbol, and image are required")

    if not wallets:
        return _invalid("At least one wallet is required")

    max_wallets = max_wallets_for(
        config.platform,
        pump_advanced=bool(config.pump_advanced),
        bonk_advanced=bool(config.bonk_advanced),
    )
    if len(wallets) > max_wallets:
        suffix = " (advanced mode)" if config.pump_advanced else ""
        return _invalid(f"Maximum {max_wallets} wallets allowed for {config.platform}{suffix}")

    for wallet in wallets:
        if not wallet.address or not wallet.private_key:
            return _invalid("Invalid wallet data")
        if not is_valid_address(wallet.address):
            return _invalid(f"Invalid wallet address: {wallet.address}")

        amount = parse_amount(wallet.amount)
        if amount is None:
            return _invalid("Invalid wallet amount")

        if wallet_balances.get(wallet.address, 0) < amount:
            return _invalid(f"Wallet {wallet.address[:6]}... has insufficient balance")

    return VALID


# ═══════════════════════════════════════════════════════════════════════════════
# CONSOLIDATE
# ═══════════════════════════════════════════════════════════════════════════════

def validate_consolidation_inputs(
    sources: Sequence[Wallet],
    receiver: Wallet,
    percentage: float,
    source_balances: Optional[Mapping[str, float]] = None,
) -> ValidationResult:
    """`source_balances` is optional; when given, every source must hold funds."""
    if not receiver.address or not receiver.private_key:
        return _invalid("Invalid receiver wallet")
    if not is_valid_address(receiver.address):
        return _invalid(f"Invalid receiver address: {receiver.address}")

    if not sources:
        return _invalid("No source wallets")

    for wallet in sources:
        if not wallet.address or not wallet.private_key:
            return _invalid("Invalid source wallet data")
        if not is_valid_address(wallet.address):
            return _invalid(f"Invalid source address: {wallet.address}")
        if wallet.address == receiver.address:
            return _invalid("Receiver wallet cannot also be a source wallet")
        if source_balances is not None and source_balances.get(wallet.address, 0) <= 0:
            return _invalid(f"Source wallet {wallet.address[:6]}... has no balance")

    if parse_percentage(percentage) is None:
        return _invalid("Percentage must be between 1 and 100")

    return VALID
