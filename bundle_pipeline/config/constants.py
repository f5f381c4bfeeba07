"""
Pipeline Constants
==================
Base currencies, preparer/relay endpoint paths and per-platform limits.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


@dataclass(frozen=True)
class BaseCurrency:
    """A currency the preparer can distribute, mix or consolidate."""
    mint: str
    symbol: str
    name: str
    decimals: int
    is_native: bool = False


SOL = BaseCurrency(
    mint="So11111111111111111111111111111111111111112",
    symbol="SOL",
    name="Solana",
    decimals=9,
    is_native=True,
)
USDC = BaseCurrency(
    mint="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    symbol="USDC",
    name="USD Coin",
    decimals=6,
)
USD1 = BaseCurrency(
    mint="USD1ttGY1N17NEEHLmELoaybftRBUSErhqYiQzvEmuB",
    symbol="USD1",
    name="USD1",
    decimals=6,
)

BASE_CURRENCIES: Dict[str, BaseCurrency] = {c.symbol: c for c in (SOL, USDC, USD1)}


def get_base_currency(symbol_or_mint: str) -> Optional[BaseCurrency]:
    """Look up a base currency by symbol (case-insensitive) or mint."""
    by_symbol = BASE_CURRENCIES.get(symbol_or_mint.upper())
    if by_symbol:
        return by_symbol
    return next((c for c in BASE_CURRENCIES.values() if c.mint == symbol_or_mint), None)


class Platform(str, Enum):
    """Launch platforms the create endpoint understands."""
    PUMPFUN = "pumpfun"
    BONK = "bonk"
    METEORA_DBC = "meteoraDBC"
    METEORA_CPAMM = "meteoraCPAMM"


# ═══════════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════════

class Endpoints:
    """Preparer and relay paths (joined onto the configured base URLs)."""
    SOL_DISTRIBUTE = "/v2/sol/distribute"
    TOKEN_DISTRIBUTE = "/v2/token/distribute"
    SOL_MIXER = "/v2/sol/mixer"
    TOKEN_MIXER = "/v2/token/mixer"
    SOL_CREATE = "/v2/sol/create"
    SOL_CONSOLIDATE = "/v2/sol/consolidate"
    SOL_SEND = "/v2/sol/send"
    BUNDLE_STATUS = "/v2/sol/bundle-status"


# ═══════════════════════════════════════════════════════════════════════════════
# LIMITS
# ═══════════════════════════════════════════════════════════════════════════════

MAX_TRANSACTIONS_PER_BUNDLE = 5
MAX_RECIPIENTS_PER_DISTRIBUTE_BATCH = 3

# Fee headroom the mixer needs per recipient (in base currency units)
MIX_FEE_ESTIMATE = 0.01

# Stage that carries the preparer's pre-signed deployment transaction
DEPLOYMENT_STAGE_NAME = "Deployment"

DEFAULT_MAX_WALLETS = 5
ADVANCED_MAX_WALLETS = 20


def max_wallets_for(platform: str, pump_advanced: bool = False, bonk_advanced: bool = False) -> int:
    """Wallet-count ceiling for a deployment on `platform`."""
    if platform == Platform.PUMPFUN.value and pump_advanced:
        return ADVANCED_MAX_WALLETS
    if platform == Platform.BONK.value:
        return ADVANCED_MAX_WALLETS if bonk_advanced else DEFAULT_MAX_WALLETS
    if platform in (Platform.METEORA_DBC.value, Platform.METEORA_CPAMM.value):
        return ADVANCED_MAX_WALLETS
    return DEFAULT_MAX_WALLETS
