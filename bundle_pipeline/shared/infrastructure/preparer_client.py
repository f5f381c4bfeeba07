"""
Preparer Client (Async)
=======================
Requests partially built transaction plans from the preparer service.

Every response is validated once, here, into a PreparedPlan. Anything the
schema rejects is a fatal PREPARER error and nothing downstream re-checks
the shape.
"""

from typing import Any, Dict, Optional

import httpx

from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.shared.execution.execution_result import Err, ErrorKind, Result
from bundle_pipeline.shared.infrastructure.http_session import JsonEndpoint
from bundle_pipeline.shared.schemas.preparer import PreparedPlan, parse_preparer_response
from bundle_pipeline.shared.system.logging import Logger


class PreparerClient:
    """
    Usage:
        preparer = PreparerClient(config)
        plan = await preparer.prepare(Endpoints.SOL_DISTRIBUTE, payload)
    """

    def __init__(self, config: PipelineConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._endpoint = JsonEndpoint(config.preparer_url, config.request_timeout_sec, client)

    async def prepare(
        self,
        path: str,
        payload: Dict[str, Any],
        default_error: str = "Failed to get partially prepared transactions",
    ) -> Result[PreparedPlan]:
        """
        POST an operation request and parse the plan that comes back.

        Args:
            path: Endpoint path, e.g. Endpoints.SOL_DISTRIBUTE
            payload: JSON request body (addresses and amounts only)
            default_error: Message used when the preparer fails without one

        Returns:
            Ok(PreparedPlan) or Err(PREPARER, reason)
        """
        try:
            status_code, body = await self._endpoint.post_json(path, payload)
        except httpx.HTTPError as e:
            Logger.error(f"[PREPARER] {path} request failed: {type(e).__name__}: {e}")
            return Err(ErrorKind.PREPARER, f"Preparer request failed: {type(e).__name__}")

        if body is None:
            return Err(ErrorKind.PREPARER, f"HTTP error! status: {status_code}")

        result = parse_preparer_response(body, default_error)
        if not result.ok:
            Logger.error(f"[PREPARER] {path}: {result.detail}")
            return result

        plan = result.value
        Logger.info(
            f"[PREPARER] {path} -> {plan.mode.value} plan, "
            f"{len(plan.stages) or len(plan.bundles)} {'stage' if plan.stages else 'bundle'}(s), "
            f"{plan.envelope_count} transaction(s)"
        )
        return result
