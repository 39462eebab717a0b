from .status_classifier import (
    StatusClassifier as StatusClassifier,
    DEFAULT_TRANSIENT_CODES as DEFAULT_TRANSIENT_CODES,
)
from .idempotency import (
    IdempotentMutationPolicy as IdempotentMutationPolicy,
    SafeIdempotentMutationPolicy as SafeIdempotentMutationPolicy,
    AlwaysRetryMutationPolicy as AlwaysRetryMutationPolicy,
)
from .backoff import (
    BackoffPolicy as BackoffPolicy,
    ExponentialBackoffPolicy as ExponentialBackoffPolicy,
    DEFAULT_INITIAL_DELAY as DEFAULT_INITIAL_DELAY,
    DEFAULT_MAXIMUM_DELAY as DEFAULT_MAXIMUM_DELAY,
    DEFAULT_BACKOFF_MULTIPLIER as DEFAULT_BACKOFF_MULTIPLIER,
)
from .retry import (
    RetryPolicy as RetryPolicy,
    LimitedErrorCountRetryPolicy as LimitedErrorCountRetryPolicy,
    LimitedTimeRetryPolicy as LimitedTimeRetryPolicy,
    DEFAULT_MAXIMUM_DURATION as DEFAULT_MAXIMUM_DURATION,
)
