"""In-memory doubles of the MutateRows RPC boundary."""

import threading
from collections import deque
from typing import Callable, List, Optional, Sequence, Tuple

from widecolumn.comm import MutateRowsEntry, MutateRowsRequest, MutateRowsStream, MutateRowsStub
from widecolumn.enum import StatusCode
from widecolumn.models import OK_STATUS, RowMutation, SetCell, Status


def set_cell(row_key: str, value: str = "v", timestamp_micros: Optional[int] = 0):
    """A single-cell row mutation; idempotent unless `timestamp_micros` is None."""
    return RowMutation(
        row_key=row_key.encode(),
        mutations=[
            SetCell(
                family="fam",
                column=b"col",
                value=value.encode(),
                timestamp_micros=timestamp_micros,
            )
        ],
    )


class FakeStream(MutateRowsStream):
    """
    Replays scripted entries, then the `finish` status.

    With `block`, a read past the last entry waits until the stream is cancelled,
    like a call whose server never answers.
    """

    def __init__(
        self,
        entries: Sequence[Tuple[int, StatusCode]] = (),
        finish: Status = OK_STATUS,
        on_read: Optional[Callable[[MutateRowsEntry], None]] = None,
        block: bool = False,
    ):
        self._entries = deque(
            MutateRowsEntry(index=index, status=Status(code)) for index, code in entries
        )
        self._finish = finish
        self._on_read = on_read
        self._block = block
        self._cancelled = threading.Event()
        self.finished = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def read(self) -> Optional[MutateRowsEntry]:
        if self.cancelled:
            return None
        if not self._entries:
            if self._block:
                self._cancelled.wait(timeout=5)
            return None
        entry = self._entries.popleft()
        if self._on_read is not None:
            self._on_read(entry)
        return entry

    def finish(self) -> Status:
        assert not self.finished, "finish() called twice"
        self.finished = True
        if self.cancelled:
            return Status(StatusCode.CANCELLED, "cancelled")
        return self._finish

    def cancel(self) -> None:
        self._cancelled.set()


class FakeStub(MutateRowsStub):
    """Returns the scripted streams, one per call, and records the requests."""

    def __init__(self, *streams: FakeStream):
        self._streams = deque(streams)
        self.requests: List[MutateRowsRequest] = []
        self.timeouts: List[Optional[float]] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def mutate_rows(
        self, request: MutateRowsRequest, timeout: Optional[float] = None
    ) -> MutateRowsStream:
        self.requests.append(request)
        self.timeouts.append(timeout)
        if not self._streams:
            raise AssertionError(f"Unexpected MutateRows call #{len(self.requests)}")
        return self._streams.popleft()

    def sent_row_keys(self, call: int) -> List[bytes]:
        return [m.row_key for m in self.requests[call].entries]
