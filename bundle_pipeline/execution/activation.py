"""
Activation Strategies
=====================
How a stage waits for an address lookup table to become usable.

A freshly extended lookup table cannot be referenced until a later slot,
so stages flagged `waitForActivation` pause after confirmation.

- FixedDelayActivation: sleep a fixed interval (default 5s)
- PollingActivation: poll a caller-supplied check until it passes or a
  timeout expires
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from bundle_pipeline.execution.cancellation import CancellationToken
from bundle_pipeline.shared.execution.execution_result import Err, ErrorKind, Ok, Result
from bundle_pipeline.shared.system.logging import Logger


class ActivationStrategy(ABC):

    @abstractmethod
    async def wait(self, cancel: CancellationToken) -> Result[None]:
        """Ok(None) once active, Err(CANCELLED) or Err(CONFIRMATION_UNKNOWN) otherwise."""


class FixedDelayActivation(ActivationStrategy):

    def __init__(self, delay_sec: float = 5.0):
        self.delay_sec = delay_sec

    async def wait(self, cancel: CancellationToken) -> Result[None]:
        Logger.info(f"[STAGE] Waiting {self.delay_sec:.1f}s for lookup table activation")
        if not await cancel.sleep(self.delay_sec):
            return Err(ErrorKind.CANCELLED, cancel.reason)
        return Ok(None)


class PollingActivation(ActivationStrategy):
    """
    Usage:
        async def lut_ready() -> bool:
            return await rpc.lookup_table_is_active(address)

        activation = PollingActivation(lut_ready, interval_sec=0.5, timeout_sec=20)
    """

    def __init__(
        self,
        check: Callable[[], Awaitable[bool]],
        interval_sec: float = 0.5,
        timeout_sec: float = 20.0,
    ):
        self.check = check
        self.interval_sec = interval_sec
        self.timeout_sec = timeout_sec

    async def wait(self, cancel: CancellationToken) -> Result[None]:
        waited = 0.0
        while True:
            if await self.check():
                Logger.info(f"[STAGE] Lookup table active after {waited:.1f}s")
                return Ok(None)
            if waited >= self.timeout_sec:
                return Err(
                    ErrorKind.CONFIRMATION_UNKNOWN,
                    f"Lookup table not active after {self.timeout_sec:.1f}s",
                )
            if not await cancel.sleep(self.interval_sec):
                return Err(ErrorKind.CANCELLED, cancel.reason)
            waited += self.interval_sec
