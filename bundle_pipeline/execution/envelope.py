"""
Envelope
========
Decoded view of one encoded, possibly partially signed transaction.

An Envelope never mutates: signing produces a new Envelope through
`with_signatures()`. Only the first `num_required_signatures` static
account keys own signature slots; an all-zero slot is empty.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

import base58
from solders.message import to_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from bundle_pipeline.shared.execution.execution_result import Err, ErrorKind, Ok, Result

EMPTY_SIGNATURE = Signature.default()


class EnvelopeEncoding(Enum):
    BASE58 = "base58"
    BASE64 = "base64"


def _decode_bytes(encoded: str, encoding: EnvelopeEncoding) -> bytes:
    if encoding == EnvelopeEncoding.BASE58:
        return base58.b58decode(encoded)
    return base64.b64decode(encoded, validate=True)


@dataclass(frozen=True)
class Envelope:
    transaction: VersionedTransaction
    encoding: EnvelopeEncoding = EnvelopeEncoding.BASE58

    @classmethod
    def decode(cls, encoded: str) -> Result["Envelope"]:
        """
        Decode an envelope, trying base58 first and base64 second.

        The preparer has historically mixed the two encodings, so a failure
        at either the byte-decoding or the deserialization step falls
        through to the next encoding.
        """
        if not encoded:
            return Err(ErrorKind.PREPARER, "Empty transaction payload")

        for encoding in (EnvelopeEncoding.BASE58, EnvelopeEncoding.BASE64):
            try:
                raw = _decode_bytes(encoded.strip(), encoding)
                return Ok(cls(VersionedTransaction.from_bytes(raw), encoding))
            except Exception:
                # solders raises its own error types for malformed bincode
                continue

        return Err(ErrorKind.PREPARER, "Could not decode transaction as base58 or base64")

    # =========================================================================
    # SIGNER SLOTS
    # =========================================================================

    @property
    def num_required_signatures(self) -> int:
        return self.transaction.message.header.num_required_signatures

    @property
    def required_signers(self) -> List[Pubkey]:
        """Static account keys that own a signature slot, in slot order."""
        return list(self.transaction.message.account_keys[: self.num_required_signatures])

    @property
    def signatures(self) -> List[Signature]:
        """One entry per required signer; missing trailing slots read as empty."""
        sigs = list(self.transaction.signatures)[: self.num_required_signatures]
        sigs.extend([EMPTY_SIGNATURE] * (self.num_required_signatures - len(sigs)))
        return sigs

    def is_slot_filled(self, index: int) -> bool:
        return self.signatures[index] != EMPTY_SIGNATURE

    @property
    def filled_slots(self) -> List[int]:
        return [i for i, sig in enumerate(self.signatures) if sig != EMPTY_SIGNATURE]

    @property
    def empty_slots(self) -> List[int]:
        return [i for i, sig in enumerate(self.signatures) if sig == EMPTY_SIGNATURE]

    @property
    def is_complete(self) -> bool:
        return not self.empty_slots

    @property
    def is_presigned(self) -> bool:
        """Slot 0 (fee payer) already carries a signature."""
        return self.num_required_signatures > 0 and self.is_slot_filled(0)

    # =========================================================================
    # SIGNING / ENCODING
    # =========================================================================

    @property
    def message_bytes(self) -> bytes:
        """Bytes each signer signs (version prefix included for v0 messages)."""
        return to_bytes_versioned(self.transaction.message)

    def with_signatures(self, signatures: Sequence[Signature]) -> "Envelope":
        tx = VersionedTransaction.populate(self.transaction.message, list(signatures))
        return Envelope(tx, self.encoding)

    def to_bytes(self) -> bytes:
        return bytes(self.transaction)

    def encode(self, encoding: EnvelopeEncoding = EnvelopeEncoding.BASE58) -> str:
        raw = self.to_bytes()
        if encoding == EnvelopeEncoding.BASE58:
            return base58.b58encode(raw).decode("utf-8")
        return base64.b64encode(raw).decode("utf-8")
