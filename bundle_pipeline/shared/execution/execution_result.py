"""
Pipeline Results
================
Tagged result type and the records every pipeline run returns.

Expected outcomes (a rejected bundle, a missing signer, a preparer error)
travel as `Err(kind, detail)` values instead of exceptions, so callers can
tell retryable failures from fatal ones without matching on message text.

Usage:
    result = await relay.submit(chunk)
    if result.ok:
        relay_id = result.value.relay_id
    elif result.kind.retryable:
        ...
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    """Why a pipeline step failed."""

    PREPARER = "PREPARER"                    # Malformed/absent transaction data
    KEY = "KEY"                              # Secret material could not be decoded
    SIGNING = "SIGNING"                      # No key for a required signer slot
    RELAY_TRANSIENT = "RELAY_TRANSIENT"      # HTTP/network failure talking to relay
    RELAY_REJECTED = "RELAY_REJECTED"        # Relay answered success=false
    CONFIRMATION_FAILED = "CONFIRMATION_FAILED"
    CONFIRMATION_UNKNOWN = "CONFIRMATION_UNKNOWN"
    CANCELLED = "CANCELLED"
    VALIDATION = "VALIDATION"
    UNKNOWN = "UNKNOWN"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.RELAY_TRANSIENT, ErrorKind.RELAY_REJECTED)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    ok = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str

    ok = False

    def unwrap(self):
        raise ValueError(f"{self.kind.value}: {self.detail}")

    def __str__(self) -> str:
        return self.detail


Result = Union[Ok[T], Err]


# ═══════════════════════════════════════════════════════════════════════════════
# RELAY RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SubmitReceipt:
    """What the relay handed back for an accepted bundle."""
    relay_id: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict)
    attempts: int = 1


@dataclass(frozen=True)
class BundleStatusReport:
    """One answer from the relay's status endpoint."""
    status: str = ""   # lowercased, empty while the relay has no verdict
    error: Optional[str] = None


class ConfirmationOutcome(Enum):
    LANDED = "LANDED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"   # Timed out without an explicit verdict
    CANCELLED = "CANCELLED"


# ═══════════════════════════════════════════════════════════════════════════════
# RUN RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class BundleResult:
    """Outcome of one chunk in the simple (non-staged) flow."""
    bundle_index: int
    success: bool
    relay_id: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    attempts: int = 0
    raw: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bundle_index": self.bundle_index,
            "success": self.success,
            "relay_id": self.relay_id,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "attempts": self.attempts,
        }


@dataclass
class StageResult:
    """Outcome of one stage of a staged deployment."""
    stage_index: int
    stage_name: str
    success: bool
    relay_id: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    confirmation: Optional[ConfirmationOutcome] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage_index": self.stage_index,
            "stage_name": self.stage_name,
            "success": self.success,
            "relay_id": self.relay_id,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "confirmation": self.confirmation.value if self.confirmation else None,
        }


class PlanMode(Enum):
    SIMPLE = "simple"
    STAGED = "staged"


@dataclass
class PlanResult:
    """
    Aggregate outcome of executing one preparer response.

    `success` means the critical part of the plan went through: the first
    bundle in simple mode, every stage in staged mode. Later simple-mode
    bundles can still fail; see `failure_count`.
    """
    success: bool
    mode: PlanMode = PlanMode.SIMPLE
    bundle_results: List[BundleResult] = field(default_factory=list)
    stage_results: List[StageResult] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    mint: Optional[str] = None
    pool_id: Optional[str] = None
    lookup_table_address: Optional[str] = None

    @property
    def success_count(self) -> int:
        records = self.stage_results if self.mode == PlanMode.STAGED else self.bundle_results
        return sum(1 for r in records if r.success)

    @property
    def failure_count(self) -> int:
        records = self.stage_results if self.mode == PlanMode.STAGED else self.bundle_results
        return sum(1 for r in records if not r.success)

    @property
    def relay_ids(self) -> List[str]:
        records = self.stage_results if self.mode == PlanMode.STAGED else self.bundle_results
        return [r.relay_id for r in records if r.relay_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "mode": self.mode.value,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "bundle_results": [r.to_dict() for r in self.bundle_results],
            "stage_results": [r.to_dict() for r in self.stage_results],
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "mint": self.mint,
            "pool_id": self.pool_id,
            "lookup_table_address": self.lookup_table_address,
        }


@dataclass
class OperationResult:
    """
    What every facade entry point returns.

    `results` holds one PlanResult per preparer call made (one per batch for
    distribute, one per recipient for mix).
    """
    success: bool
    results: List[PlanResult] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def relay_ids(self) -> List[str]:
        return [rid for plan in self.results for rid in plan.relay_ids]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


@dataclass
class CreateResult(OperationResult):
    """Token deployment outcome with the preparer's identifiers."""
    mint_address: Optional[str] = None
    pool_id: Optional[str] = None
    lookup_table_address: Optional[str] = None

    @property
    def stage_results(self) -> List[StageResult]:
        return [s for plan in self.results for s in plan.stage_results]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "mint_address": self.mint_address,
            "pool_id": self.pool_id,
            "lookup_table_address": self.lookup_table_address,
        })
        return data


# ═══════════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def failed_plan(kind: ErrorKind, detail: str, mode: PlanMode = PlanMode.SIMPLE, **kwargs) -> PlanResult:
    """Create a PlanResult for a plan that failed before anything was sent."""
    return PlanResult(
        success=False,
        mode=mode,
        error=detail,
        error_kind=kind,
        mint=kwargs.get("mint"),
        pool_id=kwargs.get("pool_id"),
        lookup_table_address=kwargs.get("lookup_table_address"),
    )


def failed_operation(kind: ErrorKind, detail: str, results: Optional[List[PlanResult]] = None) -> OperationResult:
    """Create a failed OperationResult, keeping whatever completed before the failure."""
    return OperationResult(success=False, results=list(results or []), error=detail, error_kind=kind)
