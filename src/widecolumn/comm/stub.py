"""
RPC Boundary Module.

Defines the abstract streaming write RPC consumed by the bulk apply engine.
A `MutateRowsStub` opens one `MutateRowsStream` per round; the stream yields
per-mutation outcomes and, once exhausted, the channel-level terminal status.

The [`FlightMutateRowsStub`][widecolumn.comm.FlightMutateRowsStub] implements
this interface over PyArrow Flight; tests inject in-memory doubles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..models import Status
from .request import MutateRowsRequest


@dataclass(frozen=True)
class MutateRowsEntry:
    """
    The outcome of one mutation within a round.

    Attributes:
        index (int): The position of the mutation in the request of the round
            (0-based), **not** its position in the original batch.
        status (Status): The outcome of the mutation.
    """

    index: int
    status: Status


class MutateRowsStream(ABC):
    """A server-streaming response of a MutateRows call."""

    @abstractmethod
    def read(self) -> Optional[MutateRowsEntry]:
        """Returns the next entry, or `None` once the stream is exhausted."""
        pass

    @abstractmethod
    def finish(self) -> Status:
        """
        Returns the channel-level terminal status of the stream.

        Must be called once, after `read()` returned `None` or after `cancel()`.
        """
        pass

    def cancel(self) -> None:
        """Asks the transport to abandon the stream. Defaults to a no-op."""
        pass


class MutateRowsStub(ABC):
    """Factory of MutateRows streams."""

    @abstractmethod
    def mutate_rows(
        self, request: MutateRowsRequest, timeout: Optional[float] = None
    ) -> MutateRowsStream:
        """
        Sends `request` and returns the stream of its outcomes.

        Transport failures must not be raised: they are reported by the
        `finish()` status of the returned stream.

        Args:
            request: The mutations of the round, in order.
            timeout: Optional deadline (in seconds) of the call.
        """
        pass
