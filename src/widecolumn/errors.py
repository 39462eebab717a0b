"""
Exceptions raised by the widecolumn SDK.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .models.failure import FailedMutation
    from .models.status import Status


class WideColumnError(Exception):
    """Base class of all the errors raised by the SDK."""


class PermanentMutationFailure(WideColumnError):
    """
    Raised when one or more mutations of a bulk apply could not be applied.

    The exception carries every unresolved mutation with its original index in
    the batch and its final status, so the caller can inspect and possibly
    resubmit them.

    Example:
        ```python
        try:
            table.bulk_apply(bulk)
        except PermanentMutationFailure as ex:
            for failure in ex.failures:
                print(failure.original_index, failure.mutation.row_key, failure.status)
        ```
    """

    def __init__(
        self,
        message: str,
        failures: List["FailedMutation"],
        status: Optional["Status"] = None,
    ):
        self._failures = list(failures)
        self._status = status
        details = f"{message} ({len(self._failures)} failed mutations)"
        if status is not None:
            details += f", last stream status: '{status}'"
        super().__init__(details)

    @property
    def failures(self) -> List["FailedMutation"]:
        """The failed mutations, sorted by original index."""
        return self._failures

    @property
    def status(self) -> Optional["Status"]:
        """The last channel-level status, if the stream itself failed."""
        return self._status
