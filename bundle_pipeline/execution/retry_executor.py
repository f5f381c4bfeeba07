"""
Retry Executor
==============
Submission policies for signed chunks.

Two policies:
- send_with_retry ("critical"): bounded retry with exponential backoff and
  jitter. Gives up after `max_retry_attempts` attempts or
  `max_consecutive_errors` failures in a row, whichever comes first.
- send_once: one attempt, failure recorded by the caller.

Backoff for attempt n (1-based):
    base_retry_delay * retry_backoff_factor ** (n - 1) * uniform(*retry_jitter)
"""

import random
from dataclasses import replace
from typing import Optional, Sequence

from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.execution.cancellation import CancellationToken, NeverCancelled
from bundle_pipeline.shared.execution.execution_result import (
    Err,
    ErrorKind,
    Ok,
    Result,
    SubmitReceipt,
)
from bundle_pipeline.shared.infrastructure.relay_client import BundleRelayClient
from bundle_pipeline.shared.system.logging import Logger


class RetryExecutor:
    """
    Usage:
        executor = RetryExecutor(relay, config, cancel=token)
        receipt = await executor.send_with_retry(first_chunk)
    """

    def __init__(
        self,
        relay: BundleRelayClient,
        config: PipelineConfig,
        cancel: Optional[CancellationToken] = None,
        rng: Optional[random.Random] = None,
    ):
        self.relay = relay
        self.config = config
        self.cancel = cancel or NeverCancelled()
        self._rng = rng or random.Random()
        self.last_attempts = 0

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt`."""
        low, high = self.config.retry_jitter
        jitter = self._rng.uniform(low, high)
        return self.config.base_retry_delay_sec * (self.config.retry_backoff_factor ** (attempt - 1)) * jitter

    async def send_with_retry(self, chunk: Sequence[str], label: str = "first bundle") -> Result[SubmitReceipt]:
        """
        Submit `chunk` under the critical policy.

        Returns:
            Ok(receipt with attempt count), Err(CANCELLED), or the last relay
            error wrapped as "Failed to send <label> after N attempts: ...".
        """
        attempt = 0
        self.last_attempts = 0
        consecutive_errors = 0
        last_error: Optional[Err] = None

        while True:
            if self.cancel.cancelled:
                return Err(ErrorKind.CANCELLED, self.cancel.reason)

            attempt += 1
            self.last_attempts = attempt
            result = await self.relay.submit(list(chunk))

            if result.ok:
                if attempt > 1:
                    Logger.success(f"[RETRY] {label} accepted on attempt {attempt}")
                return Ok(replace(result.value, attempts=attempt))

            last_error = result
            consecutive_errors += 1

            if not result.kind.retryable:
                break
            if attempt >= self.config.max_retry_attempts:
                break
            if consecutive_errors >= self.config.max_consecutive_errors:
                break

            delay = self.backoff_delay(attempt)
            Logger.warning(
                f"[RETRY] {label} attempt {attempt} failed ({result.detail}); retrying in {delay:.2f}s"
            )
            if not await self.cancel.sleep(delay):
                return Err(ErrorKind.CANCELLED, self.cancel.reason)

        Logger.error(f"[RETRY] Giving up on {label} after {attempt} attempts: {last_error.detail}")
        return Err(last_error.kind, f"Failed to send {label} after {attempt} attempts: {last_error.detail}")

    async def send_once(self, chunk: Sequence[str]) -> Result[SubmitReceipt]:
        """Single-attempt policy for non-critical chunks."""
        if self.cancel.cancelled:
            return Err(ErrorKind.CANCELLED, self.cancel.reason)
        return await self.relay.submit(list(chunk))
