from enum import Enum, IntEnum


class StatusCode(IntEnum):
    """
    Canonical status codes reported by the storage service.

    The numeric values match the gRPC status codes, so codes read from the
    wire (e.g. the `code` column of a MutateRows response batch) can be
    converted with `StatusCode(value)`.
    """

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class StatusCategory(Enum):
    """
    Retry category of a status, as decided by a
    [`StatusClassifier`][widecolumn.policies.StatusClassifier].
    """

    Success = "success"  # The mutation was applied.
    Transient = "transient"  # Safe to retry if the mutation is idempotent.
    Permanent = "permanent"  # Never retried.
