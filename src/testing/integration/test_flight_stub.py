"""
These tests run against an in-process Flight server (localhost)
"""

import threading
import time

import pyarrow as pa
import pyarrow.flight as fl
import pytest

from widecolumn import (
    BulkMutation,
    DeleteFromRow,
    ExponentialBackoffPolicy,
    FlightMutateRowsStub,
    LimitedErrorCountRetryPolicy,
    PermanentMutationFailure,
    RowMutation,
    SetCell,
    Status,
    StatusCode,
    WideColumnClient,
)
from widecolumn.comm.request import MutateRowsRequest

from .server import ScriptedMutateRowsServer, ScriptedResponse


def _bulk(*row_keys: bytes) -> BulkMutation:
    bulk = BulkMutation()
    for row_key in row_keys:
        bulk.emplace_back(
            row_key,
            SetCell(family="fam", column=b"col", value=b"v", timestamp_micros=0),
        )
    return bulk


def _open_table(client: WideColumnClient, max_failures: int = 3):
    return client.open_table(
        "foo-table",
        retry_policy=LimitedErrorCountRetryPolicy(max_failures),
        backoff_policy=ExponentialBackoffPolicy(0.001, 0.004),
    )


def test_invalid_host():
    with pytest.raises(
        ConnectionError,
        match="Connection to Flight server at 'invalid-address:0' failed on startup",
    ):
        WideColumnClient.connect(host="invalid-address", port=0, timeout=0)


def test_client_must_be_built_by_connect():
    with pytest.raises(RuntimeError, match="WideColumnClient.connect"):
        WideColumnClient(
            host="localhost", port=0, timeout=0, client=None, sentinel=object()
        )


def test_bulk_apply(_client: WideColumnClient, _server: ScriptedMutateRowsServer):
    bulk = _bulk(b"foo", b"bar")
    bulk.emplace_back(b"baz", DeleteFromRow())

    _open_table(_client).bulk_apply(bulk)

    assert len(_server.requests) == 1
    request = _server.requests[0]
    assert request.table_name == "foo-table"
    # The server decodes exactly what was sent
    assert request == MutateRowsRequest(table_name="foo-table", entries=tuple(bulk))


def test_retry_partial_failure(
    _client: WideColumnClient, _server: ScriptedMutateRowsServer
):
    _server.push(
        ScriptedResponse(
            entries=[(0, Status(StatusCode.UNAVAILABLE, "try again")), (1, Status())]
        )
    )

    _open_table(_client).bulk_apply(_bulk(b"foo", b"bar"))

    assert len(_server.requests) == 2
    assert [m.row_key for m in _server.requests[1].entries] == [b"foo"]


def test_permanent_failure(_client: WideColumnClient, _server: ScriptedMutateRowsServer):
    _server.push(
        ScriptedResponse(
            entries=[(1, Status(StatusCode.OUT_OF_RANGE, "bad cell")), (0, Status())]
        )
    )

    with pytest.raises(PermanentMutationFailure) as excinfo:
        _open_table(_client).bulk_apply(_bulk(b"foo", b"bar"))

    assert len(_server.requests) == 1
    failures = excinfo.value.failures
    assert len(failures) == 1
    assert failures[0].original_index == 1
    assert failures[0].status == Status(StatusCode.OUT_OF_RANGE, "bad cell")


def test_unavailable_stream_is_retried(
    _client: WideColumnClient, _server: ScriptedMutateRowsServer
):
    _server.push(ScriptedResponse(error=fl.FlightUnavailableError("server restarting")))

    _open_table(_client).bulk_apply(_bulk(b"foo", b"bar"))

    assert len(_server.requests) == 2
    assert [m.row_key for m in _server.requests[1].entries] == [b"foo", b"bar"]


def test_stream_failure_after_partial_results(
    _client: WideColumnClient, _server: ScriptedMutateRowsServer
):
    _server.push(
        ScriptedResponse(
            entries=[(0, Status())],
            error=fl.FlightUnavailableError("connection reset"),
        )
    )

    _open_table(_client).bulk_apply(_bulk(b"foo", b"bar"))

    assert len(_server.requests) == 2
    assert b"bar" in [m.row_key for m in _server.requests[1].entries]


def test_server_error_is_not_retried(
    _client: WideColumnClient, _server: ScriptedMutateRowsServer
):
    _server.push(ScriptedResponse(error=fl.FlightServerError("no such table")))

    with pytest.raises(PermanentMutationFailure) as excinfo:
        _open_table(_client).bulk_apply(_bulk(b"foo", b"bar"))

    assert len(_server.requests) == 1
    assert len(excinfo.value.failures) == 2
    assert excinfo.value.status is not None
    assert excinfo.value.status.code in (StatusCode.UNKNOWN, StatusCode.INTERNAL)
    assert "no such table" in excinfo.value.status.message


def test_too_many_failures(_client: WideColumnClient, _server: ScriptedMutateRowsServer):
    _server.push(
        *[
            ScriptedResponse(error=fl.FlightUnavailableError("try again"))
            for _ in range(3)
        ]
    )

    result = _open_table(_client, max_failures=2).try_bulk_apply(_bulk(b"foo"))

    assert len(_server.requests) == 3
    assert result.failures[0].status.code == StatusCode.UNAVAILABLE
    assert result.status is not None and result.status.code == StatusCode.UNAVAILABLE


def test_cancel_interrupts_a_slow_server(
    _client: WideColumnClient, _server: ScriptedMutateRowsServer
):
    _server.push(ScriptedResponse(delay=2.0))
    event = threading.Event()
    timer = threading.Timer(0.2, event.set)

    start = time.monotonic()
    timer.start()
    try:
        result = _open_table(_client).try_bulk_apply(
            _bulk(b"foo", b"bar"), cancel_event=event
        )
    finally:
        timer.cancel()

    # The read blocked on the server is abandoned, not waited for
    assert time.monotonic() - start < 1.5
    assert [f.original_index for f in result.failures] == [0, 1]
    assert all(f.status.code == StatusCode.CANCELLED for f in result.failures)
    assert result.status.code == StatusCode.CANCELLED


def test_malformed_response_fails_the_stream(
    _client: WideColumnClient, _server: ScriptedMutateRowsServer
):
    # No 'message' column
    _server.push(
        ScriptedResponse(
            batch=pa.record_batch(
                {"index": pa.array([0], pa.int64()), "code": pa.array([0], pa.int32())}
            )
        )
    )

    result = _open_table(_client).try_bulk_apply(_bulk(b"foo", b"bar"))

    assert len(_server.requests) == 1
    assert [f.original_index for f in result.failures] == [0, 1]
    assert all(f.status.code == StatusCode.INTERNAL for f in result.failures)
    assert result.status is not None
    assert result.status.code == StatusCode.INTERNAL
    assert "Malformed" in result.status.message


def test_unreachable_server_is_reported_as_status():
    # Reserve a port, then stop listening on it
    with ScriptedMutateRowsServer() as server:
        port = server.port
    client = fl.FlightClient(f"grpc+tcp://127.0.0.1:{port}")
    stub = FlightMutateRowsStub(client, timeout=5)

    stream = stub.mutate_rows(
        MutateRowsRequest(table_name="foo-table", entries=tuple(_bulk(b"foo")))
    )

    assert stream.read() is None
    status = stream.finish()
    assert status.code in (StatusCode.UNAVAILABLE, StatusCode.DEADLINE_EXCEEDED)
    client.close()


def test_open_table_cache(_client: WideColumnClient):
    assert _client.open_table("foo-table") is _client.open_table("foo-table")
    assert _client.open_table("foo-table") is not _open_table(_client)


def test_open_table_on_closed_client(_server: ScriptedMutateRowsServer):
    with WideColumnClient.connect(host="127.0.0.1", port=_server.port) as client:
        client.open_table("foo-table")

    with pytest.raises(RuntimeError, match="closed"):
        client.open_table("foo-table")


def test_finish_before_the_stream_is_exhausted(_server: ScriptedMutateRowsServer):
    client = fl.FlightClient(f"grpc+tcp://127.0.0.1:{_server.port}")
    stub = FlightMutateRowsStub(client, timeout=5)

    stream = stub.mutate_rows(
        MutateRowsRequest(table_name="foo-table", entries=tuple(_bulk(b"foo")))
    )
    status = stream.finish()

    # The outcomes not read yet are abandoned
    assert status.code == StatusCode.CANCELLED
    assert stream.read() is None
    client.close()
