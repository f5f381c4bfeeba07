"""
Mock Relay
==========
Scripted stand-in for BundleRelayClient, plus a cancellation token that
records sleeps instead of taking them.
"""

from typing import List, Optional, Sequence, Union

from bundle_pipeline.execution.cancellation import CancellationToken
from bundle_pipeline.shared.execution.execution_result import (
    BundleStatusReport,
    Err,
    ErrorKind,
    Ok,
    SubmitReceipt,
)

SubmitOutcome = Union[str, Err, None]
StatusOutcome = Union[str, Err, BundleStatusReport]


def rejected(detail: str = "Bundle rejected") -> Err:
    return Err(ErrorKind.RELAY_REJECTED, detail)


def transient(detail: str = "Relay request failed: ConnectError") -> Err:
    return Err(ErrorKind.RELAY_TRANSIENT, detail)


class FakeRelay:
    """
    Mock relay.

    `submit_script` is consumed one entry per submit call: a string is the
    relay id to hand back, an Err is returned as-is, None means accept with
    a generated id. Once exhausted every submit is accepted (or rejected,
    with `fail_forever=True`).

    `statuses` works the same way for get_status: a string becomes the
    reported status; once exhausted the status is `default_status`.

    Usage:
        relay = FakeRelay(submit_script=[rejected(), "bundle-1"])
        result = await relay.submit(["tx"])
    """

    def __init__(
        self,
        submit_script: Sequence[SubmitOutcome] = (),
        statuses: Sequence[StatusOutcome] = (),
        default_status: str = "landed",
        fail_forever: bool = False,
    ):
        self._submit_script = list(submit_script)
        self._statuses = list(statuses)
        self.default_status = default_status
        self.fail_forever = fail_forever

        self.submitted: List[List[str]] = []
        self.status_requests: List[str] = []

    async def submit(self, transactions: List[str]):
        self.submitted.append(list(transactions))

        if self._submit_script:
            outcome = self._submit_script.pop(0)
        elif self.fail_forever:
            outcome = rejected()
        else:
            outcome = None

        if isinstance(outcome, Err):
            return outcome
        return Ok(SubmitReceipt(relay_id=outcome or f"relay-{len(self.submitted)}", raw={}))

    async def get_status(self, relay_id: str):
        self.status_requests.append(relay_id)

        outcome = self._statuses.pop(0) if self._statuses else self.default_status
        if isinstance(outcome, (Err, BundleStatusReport)):
            return outcome if isinstance(outcome, Err) else Ok(outcome)
        return Ok(BundleStatusReport(status=outcome))


class RecordingToken(CancellationToken):
    """
    Cancellation token whose sleeps return immediately.

    Every requested delay is appended to `sleeps`. With `cancel_after=n`
    the token cancels itself on the n-th sleep (1-based).
    """

    def __init__(self, cancel_after: Optional[int] = None):
        super().__init__()
        self.sleeps: List[float] = []
        self.cancel_after = cancel_after

    async def sleep(self, delay: float) -> bool:
        if self.cancelled:
            return False
        self.sleeps.append(delay)
        if self.cancel_after is not None and len(self.sleeps) >= self.cancel_after:
            self.cancel("cancelled by test")
            return False
        return True

    @property
    def total_slept(self) -> float:
        return sum(self.sleeps)
