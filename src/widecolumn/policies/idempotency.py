"""
Idempotency Policies.

An idempotency policy decides whether re-submitting a row mutation is safe,
i.e. whether applying it more than once leaves the row in the same state.
"""

import typing

from ..models import RowMutation, SetCell


@typing.runtime_checkable
class IdempotentMutationPolicy(typing.Protocol):
    """
    Protocol defining the interface for idempotency policies.

    Implementations must be pure functions of the mutation: the bulk apply engine
    may call `is_idempotent()` any number of times for the same mutation.
    """

    def is_idempotent(self, mutation: RowMutation) -> bool:
        """Returns `True` if `mutation` can be safely applied more than once."""
        ...

    def clone(self) -> "IdempotentMutationPolicy":
        """Returns a policy with the same configuration."""
        ...


class SafeIdempotentMutationPolicy:
    """
    Retries only the mutations that are idempotent.

    A row mutation is idempotent iff all its cell mutations are. Every deletion is
    idempotent; a [`SetCell`][widecolumn.models.SetCell] is idempotent only if it
    carries an explicit, client-chosen timestamp.
    """

    def is_idempotent(self, mutation: RowMutation) -> bool:
        return all(
            not (isinstance(m, SetCell) and m.timestamp_micros is None)
            for m in mutation.mutations
        )

    def clone(self) -> "SafeIdempotentMutationPolicy":
        return SafeIdempotentMutationPolicy()


class AlwaysRetryMutationPolicy:
    """
    Considers every mutation idempotent.

    Use it only when duplicated cell versions (server-assigned timestamps) are
    acceptable for the application.
    """

    def is_idempotent(self, mutation: RowMutation) -> bool:
        return True

    def clone(self) -> "AlwaysRetryMutationPolicy":
        return AlwaysRetryMutationPolicy()
