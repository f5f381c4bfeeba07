"""
Signature Completer
===================
Client-side completion of partially signed envelopes.

The preparer builds transactions and leaves the signer slots it cannot fill
empty. This module fills every empty eligible slot whose account key has a
matching local key and refuses to hand back an envelope that still has a
hole in it.

Rules:
- Only the first `num_required_signatures` static keys own slots
- A populated slot is never re-signed (covers the preparer's ephemeral
  fee payer on the first envelope of a pipeline)
- Output is base58 regardless of the input encoding

Usage:
    result = complete(encoded_tx, key_set, is_first_in_pipeline=True)
    if not result.ok:
        Logger.error(f"[SIGNER] {result.detail}")
"""

from typing import Callable, Iterable, List, Optional, Sequence, Union

from solders.keypair import Keypair

from bundle_pipeline.execution.envelope import EMPTY_SIGNATURE, Envelope
from bundle_pipeline.execution.keypair_resolver import SigningKeySet, build_key_set
from bundle_pipeline.shared.execution.execution_result import Err, ErrorKind, Ok, Result
from bundle_pipeline.shared.system.logging import Logger

CandidateKeys = Union[SigningKeySet, Iterable[Keypair]]

# Maps a global envelope index (across all chunks of a plan) to the keys
# allowed to sign that envelope.
KeySelector = Callable[[int], CandidateKeys]


def _as_key_set(keys: CandidateKeys) -> SigningKeySet:
    if isinstance(keys, SigningKeySet):
        return keys
    return build_key_set(keys)


def complete(
    encoded: str,
    candidate_keys: CandidateKeys,
    is_first_in_pipeline: bool = False,
) -> Result[str]:
    """
    Fill the empty signer slots of one envelope.

    Args:
        encoded: base58 (or base64) serialized transaction
        candidate_keys: Keys allowed to sign this envelope
        is_first_in_pipeline: First envelope of the first chunk/stage. If its
            fee-payer slot is already signed, the envelope is treated as
            preparer pre-signed.

    Returns:
        Ok(base58 envelope) with every eligible slot populated, or
        Err(PREPARER) when undecodable, Err(SIGNING) when a signer is missing.
    """
    decoded = Envelope.decode(encoded)
    if not decoded.ok:
        return decoded
    envelope = decoded.value

    keys = _as_key_set(candidate_keys)
    signers = envelope.required_signers
    signatures = envelope.signatures

    if is_first_in_pipeline and envelope.is_presigned:
        Logger.debug(
            f"[SIGNER] Envelope pre-signed by fee payer {signers[0]}; "
            f"filling {len(envelope.empty_slots)} remaining slot(s)"
        )

    message_bytes = envelope.message_bytes
    for slot in envelope.empty_slots:
        keypair = keys.find(signers[slot])
        if keypair is not None:
            signatures[slot] = keypair.sign_message(message_bytes)

    for slot, signature in enumerate(signatures):
        if signature == EMPTY_SIGNATURE:
            return Err(
                ErrorKind.SIGNING,
                f"Transaction is missing signer {signers[slot]} for slot {slot}",
            )

    return Ok(envelope.with_signatures(signatures).encode())


def complete_chunk(
    chunk: Sequence[str],
    candidate_keys: CandidateKeys,
    is_first_chunk: bool = False,
    key_selector: Optional[KeySelector] = None,
    start_index: int = 0,
) -> Result[List[str]]:
    """
    Sign every envelope of a chunk, in order.

    Args:
        chunk: Encoded envelopes
        candidate_keys: Keys used when no selector is given
        is_first_chunk: Flags the chunk's first envelope as first in pipeline
        key_selector: Positional key contract, called with the global index
        start_index: Global index of the chunk's first envelope

    Returns:
        Ok(signed envelopes) or the first envelope's Err (detail prefixed
        with the envelope's global index).
    """
    keys = _as_key_set(candidate_keys)
    signed = []

    for offset, encoded in enumerate(chunk):
        index = start_index + offset
        keys_for_envelope = _as_key_set(key_selector(index)) if key_selector else keys

        result = complete(encoded, keys_for_envelope, is_first_in_pipeline=is_first_chunk and offset == 0)
        if not result.ok:
            return Err(result.kind, f"Envelope {index}: {result.detail}")
        signed.append(result.value)

    return Ok(signed)
