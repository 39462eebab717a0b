"""
Flight Transport Module.

Implements the MutateRows streaming RPC over the PyArrow Flight `DoExchange`
protocol: the request mutations are written as a single record batch, the
per-mutation outcomes are read back as record batches, and any Flight error
raised by the stream is turned into the channel-level terminal status.
"""

import threading
from collections import deque
from typing import Deque, Optional

import pyarrow as pa
import pyarrow.flight as fl

from ..enum import StatusCode
from ..logging_config import get_logger
from ..models import OK_STATUS, Status
from .request import REQUEST_SCHEMA, MutateRowsRequest, entries_from_record_batch
from .stub import MutateRowsEntry, MutateRowsStream, MutateRowsStub

# Set the hierarchical logger
logger = get_logger(__name__)

_CANCELLED_BY_CLIENT = Status(
    StatusCode.CANCELLED, "MutateRows stream cancelled by the client"
)


def _status_from_error(err: BaseException) -> Status:
    """Maps a Flight (or Arrow) error raised by the transport onto a `Status`."""
    if isinstance(err, fl.FlightUnavailableError):
        code = StatusCode.UNAVAILABLE
    elif isinstance(err, fl.FlightTimedOutError):
        code = StatusCode.DEADLINE_EXCEEDED
    elif isinstance(err, fl.FlightCancelledError):
        code = StatusCode.CANCELLED
    elif isinstance(err, fl.FlightUnauthenticatedError):
        code = StatusCode.UNAUTHENTICATED
    elif isinstance(err, fl.FlightUnauthorizedError):
        code = StatusCode.PERMISSION_DENIED
    elif isinstance(err, fl.FlightInternalError):
        code = StatusCode.INTERNAL
    else:
        code = StatusCode.UNKNOWN
    return Status(code, str(err))


class _FlightMutateRowsStream(MutateRowsStream):
    """Reads the outcomes of an open `DoExchange` call."""

    def __init__(
        self,
        writer: fl.FlightStreamWriter,
        reader: fl.FlightStreamReader,
    ):
        self._writer = writer
        self._reader = reader
        self._buffer: Deque[MutateRowsEntry] = deque()
        self._lock = threading.Lock()
        self._cancelled = False
        self._status: Optional[Status] = None
        """The terminal status, set once the stream is exhausted"""

    def read(self) -> Optional[MutateRowsEntry]:
        while not self._buffer:
            if self._status is not None:
                return None
            try:
                chunk = self._reader.read_chunk()
            except StopIteration:
                self._terminate(OK_STATUS)
                return None
            except (fl.FlightError, pa.ArrowException) as e:
                status = self._terminate(_status_from_error(e))
                logger.debug(f"MutateRows stream terminated: '{status}'")
                return None
            if chunk.data is None:
                continue
            try:
                entries = entries_from_record_batch(chunk.data)
            except ValueError as e:
                logger.warning(f"Malformed MutateRows response: '{e}'")
                self._abort(
                    Status(StatusCode.INTERNAL, f"Malformed MutateRows response: {e}")
                )
                return None
            self._buffer.extend(
                MutateRowsEntry(index=index, status=status) for index, status in entries
            )
        if self._cancelled:
            return None
        return self._buffer.popleft()

    def finish(self) -> Status:
        # No-op once exhausted, otherwise the remaining outcomes are lost
        self.cancel()
        status = self._terminate(_CANCELLED_BY_CLIENT)
        try:
            self._writer.close()
        except (fl.FlightError, pa.ArrowException) as e:
            if status.ok():
                status = _status_from_error(e)
                self._status = status
            else:
                logger.debug(f"Error closing a failed MutateRows stream: '{e}'")
        return status

    def cancel(self) -> None:
        # May be called from another thread while read() is blocked
        self._abort(_CANCELLED_BY_CLIENT)

    def _terminate(self, status: Status) -> Status:
        """Sets the terminal status unless already set; returns the one in effect."""
        with self._lock:
            if self._status is None:
                self._status = status
            return self._status

    def _abort(self, status: Status) -> None:
        with self._lock:
            if self._status is not None:
                return
            self._status = status
            self._cancelled = True
        self._reader.cancel()


class _FailedMutateRowsStream(MutateRowsStream):
    """A stream whose call could not even be started."""

    def __init__(self, status: Status):
        self._status = status

    def read(self) -> Optional[MutateRowsEntry]:
        return None

    def finish(self) -> Status:
        return self._status


class FlightMutateRowsStub(MutateRowsStub):
    """
    MutateRows transport over a PyArrow Flight connection.

    Each call opens a `DoExchange` stream whose descriptor command routes the
    request to its table, writes the request mutations as one record batch
    and closes the write side; the server answers with record batches of
    `(index, code, message)` rows, then terminates the stream. A Flight error
    terminating the stream becomes the channel-level status returned by
    `finish()`.
    """

    def __init__(self, client: fl.FlightClient, timeout: Optional[float] = None):
        """
        Args:
            client: The connection used to open the streams.
            timeout: Default deadline (in seconds) of each call, used when
                `mutate_rows()` receives none.
        """
        self._client = client
        self._timeout = timeout

    def mutate_rows(
        self, request: MutateRowsRequest, timeout: Optional[float] = None
    ) -> MutateRowsStream:
        timeout = timeout if timeout is not None else self._timeout
        descriptor = fl.FlightDescriptor.for_command(request.command())
        options = fl.FlightCallOptions(timeout=timeout)
        try:
            writer, reader = self._client.do_exchange(descriptor, options=options)
        except (fl.FlightError, pa.ArrowException) as e:
            status = _status_from_error(e)
            logger.warning(
                f"Failed to open MutateRows stream on table '{request.table_name}': '{status}'"
            )
            return _FailedMutateRowsStream(status)

        stream = _FlightMutateRowsStream(writer, reader)
        try:
            writer.begin(REQUEST_SCHEMA)
            writer.write_batch(request.to_record_batch())
            writer.done_writing()
        except (fl.FlightError, pa.ArrowException) as e:
            # The outcome of the call is read back from the stream
            logger.debug(
                f"Error writing MutateRows request on table '{request.table_name}': '{e}'"
            )
        return stream
