"""
Retry Policies.

A retry policy decides, after every failed round, whether the bulk apply
engine may issue another one. Policies hold internal counters: the engine
clones the configured template at the start of every call, so a template can
be shared by concurrent calls.

The budgets are tenacity stop strategies (`stop_after_attempt`,
`stop_after_delay`): each failed round is recorded as the outcome of the
current attempt of a `RetryCallState`.
"""

import time
import typing
from typing import Callable, Optional

import tenacity
from tenacity.stop import stop_base

from ..models import Status
from .status_classifier import StatusClassifier

DEFAULT_MAXIMUM_DURATION = 600.0
"""Default time budget (in seconds) of the retry rounds of a single call."""


@typing.runtime_checkable
class RetryPolicy(typing.Protocol):
    """Protocol defining the interface for retry policies."""

    def on_failure(self, status: Status) -> bool:
        """
        Records a failure and returns `True` if the operation may continue.

        Once it returns `False`, the engine issues no new round.
        """
        ...

    def can_retry(self, status: Status) -> bool:
        """Returns `True` if `status` is retryable at all, without recording it."""
        ...

    def clone(self) -> "RetryPolicy":
        """Returns a fresh policy with the same configuration."""
        ...


class _StopStrategyRetryPolicy:
    """Runs a tenacity stop strategy over the failed rounds of a call."""

    def __init__(
        self,
        stop: stop_base,
        classifier: Optional[StatusClassifier],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._classifier = classifier or StatusClassifier()
        self._clock = clock
        self._retrying = tenacity.Retrying(stop=stop)
        self._state = tenacity.RetryCallState(
            retry_object=self._retrying, fn=None, args=(), kwargs={}
        )
        self._state.start_time = clock()

    def can_retry(self, status: Status) -> bool:
        return self._classifier.is_transient(status)

    def on_failure(self, status: Status) -> bool:
        if not self.can_retry(status):
            return False
        self._state.set_result(status)
        self._state.outcome_timestamp = self._clock()
        if self._retrying.stop(self._state):
            return False
        self._state.prepare_for_next_attempt()
        return True


class LimitedErrorCountRetryPolicy(_StopStrategyRetryPolicy):
    """
    Tolerates up to `maximum_failures` transient failures.

    Every round that leaves mutations unresolved counts as one failure, even when
    only idempotent mutations with transient errors remain. With `K` tolerated
    failures the engine makes at most `K + 1` RPC attempts.
    """

    def __init__(
        self,
        maximum_failures: int,
        classifier: Optional[StatusClassifier] = None,
    ) -> None:
        if maximum_failures < 0:
            raise ValueError(
                f"maximum_failures must be non-negative, got {maximum_failures}"
            )
        self._maximum_failures = maximum_failures
        super().__init__(tenacity.stop_after_attempt(maximum_failures + 1), classifier)

    @property
    def maximum_failures(self) -> int:
        return self._maximum_failures

    def clone(self) -> "LimitedErrorCountRetryPolicy":
        return LimitedErrorCountRetryPolicy(self._maximum_failures, self._classifier)


class LimitedTimeRetryPolicy(_StopStrategyRetryPolicy):
    """
    Retries transient failures until `maximum_duration` seconds have elapsed
    since the policy was created (or cloned).
    """

    def __init__(
        self,
        maximum_duration: float = DEFAULT_MAXIMUM_DURATION,
        classifier: Optional[StatusClassifier] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if maximum_duration < 0:
            raise ValueError(
                f"maximum_duration must be non-negative, got {maximum_duration}"
            )
        self._maximum_duration = maximum_duration
        super().__init__(tenacity.stop_after_delay(maximum_duration), classifier, clock)

    @property
    def maximum_duration(self) -> float:
        return self._maximum_duration

    def clone(self) -> "LimitedTimeRetryPolicy":
        return LimitedTimeRetryPolicy(
            self._maximum_duration, self._classifier, self._clock
        )
