"""
Mock Envelopes
==============
Builds real, deserializable v0 transactions for signing tests.

Each envelope is a set of 1-lamport system transfers, one per signer, so
the message header asks for exactly the signers passed in.

Usage:
    payer = make_keypair(1)
    tx = unsigned_envelope(payer.pubkey(), co_signers=[alice.pubkey()])
    encoded = encode(presign(tx, payer))
"""

import base64
from typing import Iterable, List, Sequence

import base58
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

SINK = Keypair.from_seed(bytes([250]) * 32).pubkey()


def make_keypair(seed: int) -> Keypair:
    """Deterministic keypair from a single seed byte."""
    return Keypair.from_seed(bytes([seed]) * 32)


def unsigned_envelope(
    payer: Pubkey,
    co_signers: Sequence[Pubkey] = (),
    lamports: int = 1,
) -> VersionedTransaction:
    """Transaction with every signer slot empty."""
    instructions = [
        transfer(TransferParams(from_pubkey=signer, to_pubkey=SINK, lamports=lamports))
        for signer in [payer, *co_signers]
    ]
    message = MessageV0.try_compile(
        payer=payer,
        instructions=instructions,
        address_lookup_table_accounts=[],
        recent_blockhash=Hash.default(),
    )
    slots = message.header.num_required_signatures
    return VersionedTransaction.populate(message, [Signature.default()] * slots)


def presign(tx: VersionedTransaction, *keypairs: Keypair) -> VersionedTransaction:
    """Fill the slots owned by `keypairs`, leaving the rest untouched."""
    message = tx.message
    signers = list(message.account_keys[: message.header.num_required_signatures])
    signatures = list(tx.signatures)
    payload = to_bytes_versioned(message)
    for keypair in keypairs:
        signatures[signers.index(keypair.pubkey())] = keypair.sign_message(payload)
    return VersionedTransaction.populate(message, signatures)


def encode(tx: VersionedTransaction, encoding: str = "base58") -> str:
    raw = bytes(tx)
    if encoding == "base64":
        return base64.b64encode(raw).decode("utf-8")
    return base58.b58encode(raw).decode("utf-8")


def decode(encoded: str) -> VersionedTransaction:
    return VersionedTransaction.from_bytes(base58.b58decode(encoded))


def envelope(
    payer: Keypair,
    co_signers: Iterable[Keypair] = (),
    presigned: Iterable[Keypair] = (),
    lamports: int = 1,
    encoding: str = "base58",
) -> str:
    """Encoded envelope for `payer` + `co_signers`, with `presigned` slots filled."""
    tx = unsigned_envelope(payer.pubkey(), [k.pubkey() for k in co_signers], lamports)
    return encode(presign(tx, *presigned), encoding)


def signer_slots(encoded: str) -> List[Pubkey]:
    tx = decode(encoded)
    return list(tx.message.account_keys[: tx.message.header.num_required_signatures])


def all_signatures_valid(encoded: str) -> bool:
    """Every required slot holds a valid signature over the message."""
    tx = decode(encoded)
    payload = to_bytes_versioned(tx.message)
    return all(
        sig != Signature.default() and sig.verify(pubkey, payload)
        for sig, pubkey in zip(tx.signatures, signer_slots(encoded))
    )
