"""
Backoff Policies.

A backoff policy computes how long the bulk apply engine waits before starting
a new retry round. The policies never sleep themselves: the engine performs the
(cancellable) wait.

The delay bounds come from tenacity wait strategies, evaluated against a
`RetryCallState` that advances by one attempt per completed round.
"""

import random
import typing
from typing import Optional

import tenacity

from ..models import Status

DEFAULT_INITIAL_DELAY = 0.01
"""Default delay (in seconds) before the first retry round."""

DEFAULT_MAXIMUM_DELAY = 300.0
"""Default upper bound (in seconds) of the delay between rounds."""

DEFAULT_BACKOFF_MULTIPLIER = 2.0


@typing.runtime_checkable
class BackoffPolicy(typing.Protocol):
    """
    Protocol defining the interface for backoff policies.

    A policy instance tracks the *consecutive* retry rounds of a single call:
    the engine clones the configured template at the start of every call.
    """

    def on_completion(self, status: Status) -> float:
        """
        Returns the delay (in seconds) to wait before the next round.

        Args:
            status (Status): The failure status of the round being retried.
        """
        ...

    def clone(self) -> "BackoffPolicy":
        """Returns a fresh policy with the same configuration."""
        ...


class ExponentialBackoffPolicy:
    """
    Exponentially increasing, capped, jittered delays.

    The bound of the n-th delay is `initial_delay * multiplier ** (n - 1)`,
    capped at `maximum_delay` (a `tenacity.wait_exponential` strategy). When
    jitter is enabled the returned delay is drawn uniformly between the previous
    delay (or the previous bound) and the current bound: consecutive delays never
    decrease and never exceed `maximum_delay`, and clients do not retry in
    lockstep.
    """

    def __init__(
        self,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        maximum_delay: float = DEFAULT_MAXIMUM_DELAY,
        multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
        jitter: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Args:
            initial_delay: The bound (in seconds) of the first delay.
            maximum_delay: The cap (in seconds) of every delay.
            multiplier: The growth factor of the bound between calls.
            jitter: If `False`, the bound itself is returned.
            rng: Optional random generator, to make the jitter reproducible.

        Raises:
            ValueError: If the delays or the multiplier are out of range.
        """
        if initial_delay <= 0:
            raise ValueError(f"initial_delay must be positive, got {initial_delay}")
        if maximum_delay < initial_delay:
            raise ValueError(
                f"maximum_delay ({maximum_delay}) must not be smaller than "
                f"initial_delay ({initial_delay})"
            )
        if multiplier <= 1:
            raise ValueError(f"multiplier must be greater than 1, got {multiplier}")

        self._initial_delay = initial_delay
        self._maximum_delay = maximum_delay
        self._multiplier = multiplier
        self._jitter = jitter
        self._rng = rng or random.Random()

        self._retrying = tenacity.Retrying(
            wait=tenacity.wait_exponential(
                multiplier=initial_delay, max=maximum_delay, exp_base=multiplier
            )
        )
        self._state = tenacity.RetryCallState(
            retry_object=self._retrying, fn=None, args=(), kwargs={}
        )
        self._last_delay = 0.0

    @property
    def initial_delay(self) -> float:
        return self._initial_delay

    @property
    def maximum_delay(self) -> float:
        return self._maximum_delay

    def on_completion(self, status: Status) -> float:
        bound = self._retrying.wait(self._state)
        if self._jitter:
            lower = min(bound, max(self._last_delay, bound / self._multiplier))
            delay = self._rng.uniform(lower, bound)
        else:
            delay = bound
        self._last_delay = delay
        self._state.prepare_for_next_attempt()
        return delay

    def clone(self) -> "ExponentialBackoffPolicy":
        return ExponentialBackoffPolicy(
            initial_delay=self._initial_delay,
            maximum_delay=self._maximum_delay,
            multiplier=self._multiplier,
            jitter=self._jitter,
            rng=self._rng,
        )
