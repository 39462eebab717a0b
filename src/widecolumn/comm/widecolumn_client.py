"""
WideColumn Client Entry Point.

This module provides the `WideColumnClient`, the primary interface for users
to interact with the storage service. It manages the lifecycle of the
Flight connection and serves as a factory of [`Table`][widecolumn.handlers.Table]
handlers.
"""

from enum import Enum
from typing import Any, Dict, Optional, Type

import pyarrow.flight as fl

from ..handlers import Table, TableConfig
from ..handlers.helpers import _make_exception
from ..logging_config import get_logger
from ..policies import BackoffPolicy, IdempotentMutationPolicy, RetryPolicy
from .flight_stub import FlightMutateRowsStub

# Set the hierarchical logger
logger = get_logger(__name__)


class _ConnectionStatus(Enum):
    Open = "open"
    Closed = "closed"


class WideColumnClient:
    """
    The gateway to the wide-column storage service.

    Tip: Context Manager Usage
        The `WideColumnClient` is best used as a context manager to ensure the
        connection is gracefully closed.

        ```python
        from widecolumn import WideColumnClient, BulkMutation

        with WideColumnClient.connect("localhost", 8815) as client:
            table = client.open_table("events")
            table.bulk_apply(BulkMutation(...))
        ```
    """

    # --- Private Sentinel Value ---
    # Used to ensure the constructor is only called via the `connect()` factory.
    _CONNECT_SENTINEL = object()

    def __init__(
        self,
        *,
        host: str,
        port: int,
        timeout: float,
        client: fl.FlightClient,
        sentinel: object,
    ):
        """
        **Internal Constructor** (do not call this directly): please use the
        [`connect()`][widecolumn.comm.WideColumnClient.connect] method instead.

        Args:
            host: The remote server host.
            port: The remote server port.
            timeout: The connection timeout.
            client: The PyArrow Flight client.
            sentinel: Private object used to verify factory-based instantiation.
        """
        if sentinel is not WideColumnClient._CONNECT_SENTINEL:
            raise RuntimeError(
                "WideColumnClient must be instantiated using the classmethod WideColumnClient.connect()."
            )

        self._host = host
        """The remote server host"""
        self._port = port
        """The remote server port"""
        self._timeout = timeout
        """The connection timeout"""
        self._client: fl.FlightClient = client
        """The PyArrow Flight client shared by all the tables"""
        self._status: _ConnectionStatus = _ConnectionStatus.Open
        """Tracks the current connection status (Open/Closed)."""
        self._tables_cache: Dict[str, Table] = {}
        """Cache of the tables opened with the default configuration, keyed by name."""

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        timeout: float = 5,
    ) -> "WideColumnClient":
        """
        Opens a connection to the storage service.

        Args:
            host (str): The server host address (e.g., "127.0.0.1").
            port (int): The server port.
            timeout (float): Maximum time in seconds to wait for the server
                to become available. Defaults to 5.

        Returns:
            WideColumnClient: An initialized and connected client.

        Raises:
            ConnectionError: If the server is unreachable.
        """
        logger.debug(f"Opening a connection '{host}:{port}'")
        try:
            client = fl.FlightClient(f"grpc+tcp://{host}:{port}")
            client.wait_for_available(timeout=timeout)
        except Exception as e:
            raise ConnectionError(
                f"Connection to Flight server at '{host}:{port}' failed on startup.\nInner err: '{e}'"
            )

        return cls(
            host=host,
            port=port,
            timeout=timeout,
            client=client,
            sentinel=cls._CONNECT_SENTINEL,
        )

    # --- Context Manager Protocol ---

    def __enter__(self) -> "WideColumnClient":
        """Context manager entry point."""
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """
        Context manager exit point. Ensures resources are closed.

        Exceptions raised within the `with` block are propagated.
        """
        try:
            self.close()
        except Exception as e:
            logger.error(
                f"Error releasing resources allocated from WideColumnClient.\nInner err: '{e}'"
            )

    def __del__(self):
        """Destructor. Failsafe if close() is not explicitly called."""
        if getattr(self, "_status", None) == _ConnectionStatus.Open:
            logger.warning(
                "WideColumnClient destroyed without calling close(). "
                "Resources may not have been released properly."
            )

    # --- Handler Factory Methods ---

    def open_table(
        self,
        table_name: str,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        backoff_policy: Optional[BackoffPolicy] = None,
        idempotency_policy: Optional[IdempotentMutationPolicy] = None,
        timeout: Optional[float] = None,
    ) -> Table:
        """
        Returns a [`Table`][widecolumn.handlers.Table] bound to this connection.

        Tables opened without custom policies are cached.

        Args:
            table_name: The name of the table.
            retry_policy: Template of the retry policy. Defaults to
                `LimitedTimeRetryPolicy()`.
            backoff_policy: Template of the backoff policy. Defaults to
                `ExponentialBackoffPolicy()`.
            idempotency_policy: The idempotency policy. Defaults to
                `SafeIdempotentMutationPolicy()`.
            timeout: Default overall deadline (in seconds) of each bulk apply.

        Raises:
            RuntimeError: If the client is closed.
            ValueError: If the table name is malformed.
        """
        if self._status != _ConnectionStatus.Open:
            raise RuntimeError("WideColumnClient is closed.")

        customized = any(
            p is not None
            for p in (retry_policy, backoff_policy, idempotency_policy, timeout)
        )
        if not customized and table_name in self._tables_cache:
            return self._tables_cache[table_name]

        config = TableConfig()
        if retry_policy is not None:
            config.retry_policy = retry_policy
        if backoff_policy is not None:
            config.backoff_policy = backoff_policy
        if idempotency_policy is not None:
            config.idempotency_policy = idempotency_policy
        config.timeout = timeout

        table = Table(
            table_name=table_name,
            stub=FlightMutateRowsStub(self._client),
            config=config,
        )
        if not customized:
            self._tables_cache[table_name] = table
        return table

    def close(self):
        """
        Closes the Flight connection. Tables obtained from this client can no
        longer be used.
        """
        if self._status == _ConnectionStatus.Closed:
            return
        self._tables_cache.clear()
        try:
            self._client.close()
        except Exception as e:
            raise _make_exception(
                f"Error closing the connection to '{self._host}:{self._port}'.", e
            )
        finally:
            self._status = _ConnectionStatus.Closed
        logger.info(f"Connection to '{self._host}:{self._port}' closed.")
