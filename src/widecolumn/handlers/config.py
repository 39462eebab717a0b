"""
Configuration Module.

This module defines the configuration structure used to control the retry
behavior of the bulk write path of a table.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..policies import (
    BackoffPolicy,
    ExponentialBackoffPolicy,
    IdempotentMutationPolicy,
    LimitedTimeRetryPolicy,
    RetryPolicy,
    SafeIdempotentMutationPolicy,
)


@dataclass
class TableConfig:
    """
    Configuration settings of a [`Table`][widecolumn.handlers.Table].

    The policies stored here are **templates**: every call of
    [`Table.bulk_apply()`][widecolumn.handlers.Table.bulk_apply] clones them
    before use, so the same configuration can be shared by concurrent calls
    and by several tables.
    """

    retry_policy: RetryPolicy = field(default_factory=LimitedTimeRetryPolicy)
    """
    Decides whether a new round may be issued after a failed one.

    Defaults to retrying transient failures for up to ten minutes.
    """

    backoff_policy: BackoffPolicy = field(default_factory=ExponentialBackoffPolicy)
    """
    Computes the wait between consecutive rounds.

    Defaults to exponential delays from 10 milliseconds up to 5 minutes.
    """

    idempotency_policy: IdempotentMutationPolicy = field(
        default_factory=SafeIdempotentMutationPolicy
    )
    """
    Decides which mutations are safe to resend.

    Defaults to resending only mutations with explicit cell timestamps.
    """

    timeout: Optional[float] = None
    """
    Default overall deadline (in seconds) of a bulk apply call; `None` waits
    for the retry policy to give up.
    """
