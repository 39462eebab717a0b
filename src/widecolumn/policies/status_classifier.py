"""
Status Classification Module.

Maps the status codes reported by the storage service onto the retry
categories used by the bulk apply engine.
"""

from typing import FrozenSet, Iterable, Optional

from ..enum import StatusCategory, StatusCode
from ..models import Status

DEFAULT_TRANSIENT_CODES: FrozenSet[StatusCode] = frozenset(
    {
        StatusCode.UNAVAILABLE,
        StatusCode.ABORTED,
        StatusCode.DEADLINE_EXCEEDED,
        StatusCode.RESOURCE_EXHAUSTED,
    }
)


class StatusClassifier:
    """
    Decides whether a status is a success, a transient (retryable) failure
    or a permanent failure.

    By default unavailability, aborts, deadline expirations and resource
    exhaustion are transient; every other error code (e.g. `OUT_OF_RANGE`,
    `FAILED_PRECONDITION`) is permanent.
    """

    def __init__(self, transient_codes: Optional[Iterable[StatusCode]] = None) -> None:
        """
        Args:
            transient_codes: The codes to be considered transient. Defaults to
                `DEFAULT_TRANSIENT_CODES`.
        """
        codes = (
            DEFAULT_TRANSIENT_CODES if transient_codes is None else transient_codes
        )
        self._transient_codes: FrozenSet[StatusCode] = frozenset(codes)
        if StatusCode.OK in self._transient_codes:
            raise ValueError("StatusCode.OK cannot be classified as transient")

    @property
    def transient_codes(self) -> FrozenSet[StatusCode]:
        return self._transient_codes

    def classify(self, status: Status) -> StatusCategory:
        if status.ok():
            return StatusCategory.Success
        if status.code in self._transient_codes:
            return StatusCategory.Transient
        return StatusCategory.Permanent

    def is_transient(self, status: Status) -> bool:
        return self.classify(status) is StatusCategory.Transient
