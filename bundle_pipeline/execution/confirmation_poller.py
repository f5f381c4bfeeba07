"""
Confirmation Poller
===================
Polls the relay until a bundle lands, fails, or the timeout runs out.

Outcomes:
    LANDED     confirmed / landed / finalized
    FAILED     failed / invalid / dropped, or an error payload
    UNKNOWN    no verdict before the timeout
    CANCELLED  the cancellation token fired

Transient status-fetch errors are logged and polling continues. What a
stage does with UNKNOWN is decided by `unknown_confirmation_policy`.
"""

import time
from typing import Callable, Optional

from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.execution.cancellation import CancellationToken, NeverCancelled
from bundle_pipeline.shared.execution.execution_result import ConfirmationOutcome
from bundle_pipeline.shared.infrastructure.relay_client import BundleRelayClient
from bundle_pipeline.shared.system.logging import Logger

LANDED_STATUSES = frozenset({"confirmed", "landed", "finalized"})
FAILED_STATUSES = frozenset({"failed", "invalid", "dropped"})


class ConfirmationPoller:
    """
    Usage:
        poller = ConfirmationPoller(relay, config)
        outcome = await poller.wait(relay_id)
    """

    def __init__(
        self,
        relay: BundleRelayClient,
        config: PipelineConfig,
        cancel: Optional[CancellationToken] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.relay = relay
        self.config = config
        self.cancel = cancel or NeverCancelled()
        self._clock = clock

    async def wait(
        self,
        relay_id: Optional[str],
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> ConfirmationOutcome:
        """
        Poll every `interval` seconds until a verdict or `timeout` elapses.

        Elapsed time is the larger of wall-clock time and the total time
        slept, so an injected sleep still terminates the loop.
        """
        timeout = self.config.confirmation_timeout_sec if timeout is None else timeout
        interval = self.config.poll_interval_sec if interval is None else interval

        if not relay_id:
            Logger.warning("[POLL] No relay id to poll; confirmation unknown")
            return ConfirmationOutcome.UNKNOWN

        start = self._clock()
        slept = 0.0

        while True:
            if self.cancel.cancelled:
                return ConfirmationOutcome.CANCELLED

            result = await self.relay.get_status(relay_id)
            if result.ok:
                report = result.value
                if report.status in LANDED_STATUSES:
                    Logger.success(f"[POLL] Bundle {relay_id[:16]}... {report.status}")
                    return ConfirmationOutcome.LANDED
                if report.status in FAILED_STATUSES or report.error:
                    Logger.warning(
                        f"[POLL] Bundle {relay_id[:16]}... failed: {report.error or report.status}"
                    )
                    return ConfirmationOutcome.FAILED
            else:
                Logger.debug(f"[POLL] Status check error: {result.detail}")

            elapsed = max(self._clock() - start, slept)
            if elapsed >= timeout:
                Logger.warning(f"[POLL] No verdict for {relay_id[:16]}... after {timeout:.1f}s")
                return ConfirmationOutcome.UNKNOWN

            pause = min(interval, timeout - elapsed)
            if not await self.cancel.sleep(pause):
                return ConfirmationOutcome.CANCELLED
            slept += pause

    async def await_landed(
        self,
        relay_id: Optional[str],
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> bool:
        """Boolean form: only an explicit failure (or cancellation) is False."""
        outcome = await self.wait(relay_id, timeout, interval)
        return outcome in (ConfirmationOutcome.LANDED, ConfirmationOutcome.UNKNOWN)
