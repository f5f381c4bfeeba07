"""
Keypair Resolver
================
Turns opaque secret material into solders Keypairs.

Pure, no I/O. Accepted forms:
- base58 64-byte secret key (Phantom / web3.js export)
- base58 32-byte seed
- JSON array of 64 or 32 integers (Solana CLI keyfile contents)
- raw bytes of either length
- an existing Keypair

Errors never echo the secret back.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from bundle_pipeline.shared.execution.execution_result import Err, ErrorKind, Ok, Result

SecretMaterial = Union[str, bytes, bytearray, Sequence[int], Keypair]


def _from_raw(raw: bytes) -> Keypair:
    if len(raw) == 64:
        return Keypair.from_bytes(raw)
    if len(raw) == 32:
        return Keypair.from_seed(raw)
    raise ValueError(f"expected 32 or 64 bytes, got {len(raw)}")


def resolve_keypair(secret: SecretMaterial, label: str = "wallet") -> Result[Keypair]:
    """
    Resolve one piece of secret material.

    Args:
        secret: Key material in any accepted form
        label: Name used in the error message (never the secret itself)

    Returns:
        Ok(Keypair) or Err(KEY, reason)
    """
    if isinstance(secret, Keypair):
        return Ok(secret)

    try:
        if isinstance(secret, (bytes, bytearray)):
            return Ok(_from_raw(bytes(secret)))

        if isinstance(secret, str):
            text = secret.strip()
            if not text:
                return Err(ErrorKind.KEY, f"Empty private key for {label}")
            if text.startswith("["):
                return Ok(_from_raw(bytes(json.loads(text))))
            return Ok(_from_raw(base58.b58decode(text)))

        if isinstance(secret, (list, tuple)):
            return Ok(_from_raw(bytes(secret)))

    except (ValueError, TypeError) as e:
        # json, base58 and solders all raise ValueError subclasses for bad input
        return Err(ErrorKind.KEY, f"Invalid private key for {label}: {type(e).__name__}")

    return Err(ErrorKind.KEY, f"Unsupported private key type for {label}: {type(secret).__name__}")


def resolve_keypairs(secrets: Iterable[SecretMaterial], label: str = "wallet") -> Result[List[Keypair]]:
    """Resolve many secrets; the first failure wins."""
    keypairs = []
    for index, secret in enumerate(secrets):
        result = resolve_keypair(secret, f"{label} #{index + 1}")
        if not result.ok:
            return result
        keypairs.append(result.value)
    return Ok(keypairs)


def is_valid_address(address: str) -> bool:
    """True if `address` is a well-formed base58 public key."""
    if not address or not isinstance(address, str):
        return False
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


# ═══════════════════════════════════════════════════════════════════════════════
# SIGNING KEY SET
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SigningKeySet:
    """
    Keys available for one pipeline run.

    Wallet keys come from the caller; additional keys come from the preparer
    (e.g. a freshly generated mint identity). Immutable and de-duplicated by
    public key, first occurrence wins.
    """
    wallet_keys: Tuple[Keypair, ...] = ()
    additional_keys: Tuple[Keypair, ...] = ()
    _by_pubkey: Dict[Pubkey, Keypair] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        index: Dict[Pubkey, Keypair] = {}
        for kp in (*self.wallet_keys, *self.additional_keys):
            index.setdefault(kp.pubkey(), kp)
        object.__setattr__(self, "_by_pubkey", index)

    @property
    def keys(self) -> List[Keypair]:
        return list(self._by_pubkey.values())

    @property
    def pubkeys(self) -> List[Pubkey]:
        return list(self._by_pubkey.keys())

    def find(self, pubkey: Pubkey) -> Optional[Keypair]:
        return self._by_pubkey.get(pubkey)

    def __contains__(self, pubkey: Pubkey) -> bool:
        return pubkey in self._by_pubkey

    def __len__(self) -> int:
        return len(self._by_pubkey)

    def subset(self, pubkeys: Iterable[Pubkey]) -> "SigningKeySet":
        """Key set restricted to `pubkeys` (unknown ones are ignored)."""
        return SigningKeySet(wallet_keys=tuple(k for k in (self.find(p) for p in pubkeys) if k is not None))


def build_key_set(
    wallet_keys: Iterable[Keypair],
    additional_keys: Iterable[Keypair] = (),
) -> SigningKeySet:
    return SigningKeySet(wallet_keys=tuple(wallet_keys), additional_keys=tuple(additional_keys))
