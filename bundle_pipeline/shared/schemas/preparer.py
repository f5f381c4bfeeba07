"""
Preparer Schemas
================
Pydantic models for the preparer's response.

The preparer answers `{success, error, data: {...}}` or puts the same
payload at the top level. The payload carries exactly one transaction
layout:

    stages        -> staged deployment (advanced mode)
    bundles       -> list of bundles (string lists or {transactions} objects)
    transactions  -> one flat bundle

plus optional identifiers (mint, poolId, lookupTableAddress, mintPrivateKey).
The response is validated once here; every other shape is a fatal preparer
error.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from bundle_pipeline.shared.execution.execution_result import (
    Err,
    ErrorKind,
    Ok,
    PlanMode,
    Result,
)

EncodedEnvelope = Annotated[str, Field(min_length=1)]


class PreparedStage(BaseModel):
    """
    One named step of a staged deployment.

    Example:
        {"name": "Create LUT", "description": "Lookup table",
         "transactions": ["4hX..."], "requiresConfirmation": true,
         "waitForActivation": true}
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    transactions: List[EncodedEnvelope] = Field(..., min_length=1)
    requires_confirmation: bool = Field(default=False, alias="requiresConfirmation")
    wait_for_activation: bool = Field(default=False, alias="waitForActivation")


class PreparedPlan(BaseModel):
    """Normalized preparer payload: either bundles or stages, never both."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bundles: List[List[EncodedEnvelope]] = Field(default_factory=list)
    stages: List[PreparedStage] = Field(default_factory=list)

    mint: Optional[str] = None
    pool_id: Optional[str] = Field(default=None, alias="poolId")
    lookup_table_address: Optional[str] = Field(default=None, alias="lookupTableAddress")
    mint_private_key: Optional[str] = Field(default=None, alias="mintPrivateKey", repr=False)
    is_advanced_mode: bool = Field(default=False, alias="isAdvancedMode")

    @model_validator(mode="before")
    @classmethod
    def _normalize_layout(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("preparer payload must be an object")

        payload = dict(data)
        stages = payload.get("stages")
        bundles = payload.get("bundles")
        transactions = payload.get("transactions")

        if isinstance(stages, list) and stages:
            payload["bundles"] = []
        elif isinstance(bundles, list):
            normalized = []
            for bundle in bundles:
                if isinstance(bundle, list):
                    normalized.append(bundle)
                elif isinstance(bundle, dict) and isinstance(bundle.get("transactions"), list):
                    normalized.append(bundle["transactions"])
                else:
                    raise ValueError("bundle entries must be lists or {transactions: [...]} objects")
            payload["bundles"] = normalized
            payload["stages"] = []
        elif isinstance(transactions, list):
            payload["bundles"] = [transactions]
            payload["stages"] = []
        else:
            raise ValueError("No transactions returned from backend")

        payload.pop("transactions", None)
        return payload

    @property
    def mode(self) -> PlanMode:
        return PlanMode.STAGED if self.stages else PlanMode.SIMPLE

    @property
    def envelope_count(self) -> int:
        if self.stages:
            return sum(len(s.transactions) for s in self.stages)
        return sum(len(b) for b in self.bundles)


class PreparerResponse(BaseModel):
    """Outer response envelope."""
    model_config = ConfigDict(extra="allow")

    success: bool = False
    error: Optional[str] = None
    details: Optional[str] = None
    data: Optional[Any] = None


def parse_preparer_response(
    body: Any,
    default_error: str = "Failed to get partially prepared transactions",
) -> Result[PreparedPlan]:
    """
    Validate a decoded preparer response body.

    Returns:
        Ok(PreparedPlan) or Err(PREPARER, reason)
    """
    try:
        response = PreparerResponse.model_validate(body)
    except ValidationError as e:
        return Err(ErrorKind.PREPARER, f"Malformed preparer response: {_first_error(e)}")

    if not response.success:
        detail = response.error or default_error
        if response.details:
            detail = f"{detail}: {response.details}"
        return Err(ErrorKind.PREPARER, detail)

    payload = response.data if isinstance(response.data, dict) else response.model_extra or {}
    try:
        return Ok(PreparedPlan.model_validate(payload))
    except ValidationError as e:
        return Err(ErrorKind.PREPARER, _first_error(e))


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    message = first.get("msg", "invalid value")
    # pydantic prefixes messages raised from validators with "Value error, "
    message = message.replace("Value error, ", "")
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{message} ({location})" if location else message
