"""
Bundle Relay Client (Async)
===========================
Submits signed chunks to the relay and reads back bundle status.

Error mapping:
- Network failure, timeout, non-JSON body  -> RELAY_TRANSIENT
- Explicit `success: false`                -> RELAY_REJECTED
Both are retryable; the retry policy lives in RetryExecutor.

Usage:
    relay = BundleRelayClient(config)
    receipt = await relay.submit(signed_chunk)
"""

from typing import Any, Dict, List, Optional

import httpx

from bundle_pipeline.config.constants import Endpoints
from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.shared.execution.execution_result import (
    BundleStatusReport,
    Err,
    ErrorKind,
    Ok,
    Result,
    SubmitReceipt,
)
from bundle_pipeline.shared.infrastructure.http_session import JsonEndpoint
from bundle_pipeline.shared.infrastructure.rate_limiter import RateLimiter
from bundle_pipeline.shared.system.logging import Logger

RELAY_ID_FIELDS = ("jito", "bundleId", "relayId")


def _relay_id_from(result: Any) -> Optional[str]:
    if isinstance(result, dict):
        for key in RELAY_ID_FIELDS:
            value = result.get(key)
            if value:
                return str(value)
    elif isinstance(result, str) and result:
        return result
    return None


def _error_detail(body: Dict[str, Any], default: str) -> str:
    message = body.get("error") or default
    if body.get("details"):
        message = f"{message}: {body['details']}"
    return str(message)


class BundleRelayClient:
    """Relay access with a per-client submission rate limit."""

    def __init__(
        self,
        config: PipelineConfig,
        client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.config = config
        self._endpoint = JsonEndpoint(config.relay_url, config.request_timeout_sec, client)
        self.rate_limiter = rate_limiter or RateLimiter(config.max_bundles_per_second)

        # Stats
        self._bundles_submitted = 0
        self._bundles_accepted = 0

    async def submit(self, transactions: List[str]) -> Result[SubmitReceipt]:
        """
        Submit one signed chunk.

        Returns:
            Ok(SubmitReceipt) or Err(RELAY_TRANSIENT | RELAY_REJECTED)
        """
        if not transactions:
            return Err(ErrorKind.RELAY_REJECTED, "Refusing to submit an empty bundle")

        await self.rate_limiter.acquire()
        self._bundles_submitted += 1

        try:
            status_code, body = await self._endpoint.post_json(
                Endpoints.SOL_SEND, {"transactions": list(transactions)}
            )
        except httpx.HTTPError as e:
            Logger.debug(f"[RELAY] Submit transport error: {type(e).__name__}: {e}")
            return Err(ErrorKind.RELAY_TRANSIENT, f"Relay request failed: {type(e).__name__}")

        if not isinstance(body, dict):
            return Err(ErrorKind.RELAY_TRANSIENT, f"Relay returned HTTP {status_code} without a JSON body")

        if not body.get("success"):
            detail = _error_detail(body, "Unknown error sending transactions")
            Logger.warning(f"[RELAY] Bundle rejected: {detail}")
            return Err(ErrorKind.RELAY_REJECTED, detail)

        result = body.get("result")
        relay_id = _relay_id_from(result)
        self._bundles_accepted += 1
        if relay_id:
            Logger.info(f"[RELAY] 🚀 Bundle submitted: {relay_id[:16]}...")
        else:
            Logger.info("[RELAY] 🚀 Bundle submitted (no relay id returned)")

        return Ok(SubmitReceipt(relay_id=relay_id, raw=result if isinstance(result, dict) else {}))

    async def get_status(self, relay_id: str) -> Result[BundleStatusReport]:
        """
        Read the relay's current verdict for a bundle.

        Returns:
            Ok(BundleStatusReport) or Err(RELAY_TRANSIENT) when the status
            could not be fetched at all. A bare `success: false` with no
            status and no error means the relay has no verdict yet and is
            reported with an empty status.
        """
        try:
            status_code, body = await self._endpoint.post_json(
                Endpoints.BUNDLE_STATUS, {"relayId": relay_id}
            )
        except httpx.HTTPError as e:
            return Err(ErrorKind.RELAY_TRANSIENT, f"Status request failed: {type(e).__name__}")

        if status_code >= 400 or not isinstance(body, dict):
            return Err(ErrorKind.RELAY_TRANSIENT, f"Status endpoint returned HTTP {status_code}")

        status = str(body.get("status") or "").lower()
        error = body.get("error")
        return Ok(BundleStatusReport(status=status, error=str(error) if error else None))

    def get_stats(self) -> Dict[str, int]:
        return {
            "bundles_submitted": self._bundles_submitted,
            "bundles_accepted": self._bundles_accepted,
        }
