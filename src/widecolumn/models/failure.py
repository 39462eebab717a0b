"""
Failure Aggregation Module.

Collects the mutations that could not be applied by a bulk apply operation,
together with their original position in the batch and their final status.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import PermanentMutationFailure
from .mutations import RowMutation
from .status import Status


@dataclass(frozen=True)
class FailedMutation:
    """
    A mutation that was not applied, with the reason of the failure.

    Attributes:
        original_index (int): The position of the mutation in the submitted
            [`BulkMutation`][widecolumn.models.BulkMutation].
        mutation (RowMutation): The full mutation, so it can be resubmitted.
        status (Status): The final status of the mutation.
    """

    original_index: int
    mutation: RowMutation
    status: Status


@dataclass
class BulkApplyResult:
    """
    The terminal outcome of a bulk apply operation.

    An empty `failures` list means that every mutation was confirmed applied.

    Attributes:
        failures (List[FailedMutation]): The failed mutations, sorted by original index.
        status (Optional[Status]): The last channel-level status, set only when
            the operation terminated because of a failed stream.
    """

    failures: List[FailedMutation] = field(default_factory=list)
    status: Optional[Status] = None

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failure(self) -> None:
        """
        Raises a [`PermanentMutationFailure`][widecolumn.errors.PermanentMutationFailure]
        if any mutation failed.
        """
        if self.failures:
            raise PermanentMutationFailure(
                "Permanent errors in bulk apply",
                failures=self.failures,
                status=self.status,
            )
