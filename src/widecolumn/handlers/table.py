"""
Table Handler Module.

This module provides the `Table` class, the entry point of the resilient
write path: it applies batches of row mutations, retrying exactly the
mutations that are safe to retry.
"""

import threading
from typing import Optional

from ..comm.stub import MutateRowsStub
from ..logging_config import get_logger
from ..models import BulkApplyResult, BulkMutation, RowMutation
from .bulk_mutator import _BulkMutator
from .config import TableConfig
from .helpers import _validate_table_name

# Set the hierarchical logger
logger = get_logger(__name__)


class Table:
    """
    Applies mutations to a wide-column table.

    Each call runs its own sequence of retry rounds with fresh clones of the
    policies configured in [`TableConfig`][widecolumn.handlers.TableConfig]; a
    `Table` can therefore be shared by concurrent threads.

    Important: Obtaining a Table
        End-users should obtain tables via
        [`WideColumnClient.open_table()`][widecolumn.comm.WideColumnClient.open_table].
        Building a `Table` directly is useful to plug a custom
        [`MutateRowsStub`][widecolumn.comm.MutateRowsStub].
    """

    def __init__(
        self,
        *,
        table_name: str,
        stub: MutateRowsStub,
        config: Optional[TableConfig] = None,
    ):
        """
        Args:
            table_name: The name of the table.
            stub: The transport used to send the mutations.
            config: The retry configuration. Defaults to `TableConfig()`.

        Raises:
            ValueError: If the table name is empty or malformed.
        """
        _validate_table_name(table_name)
        self._name: str = table_name
        """The name of the table"""
        self._stub: MutateRowsStub = stub
        """The transport used by every call"""
        self._config: TableConfig = config or TableConfig()
        """The policy templates"""

    @property
    def name(self) -> str:
        """Returns the name of the table"""
        return self._name

    @property
    def config(self) -> TableConfig:
        return self._config

    def bulk_apply(
        self,
        bulk: BulkMutation,
        *,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Applies a batch of row mutations.

        The call returns only when every mutation has been confirmed applied.
        Transient failures of idempotent mutations are retried according to the
        configured retry and backoff policies; every other failure is final.

        Example:
            ```python
            from widecolumn import BulkMutation, RowMutation, SetCell

            bulk = BulkMutation(
                RowMutation(
                    row_key=b"row-0",
                    mutations=[SetCell(family="fam", column=b"c", value=b"v", timestamp_micros=0)],
                ),
            )
            try:
                table.bulk_apply(bulk)
            except PermanentMutationFailure as ex:
                retry_later = [f.mutation for f in ex.failures]
            ```

        Args:
            bulk: The mutations to apply.
            cancel_event: When set (e.g. from another thread), the call stops
                promptly and fails every unresolved mutation with `CANCELLED`.
            timeout: Overall deadline (in seconds) of the call. Defaults to
                `TableConfig.timeout`. Unresolved mutations fail with
                `DEADLINE_EXCEEDED` once it expires.

        Raises:
            PermanentMutationFailure: If any mutation could not be applied. The
                exception lists every failed mutation with its original index.
        """
        self.try_bulk_apply(
            bulk, cancel_event=cancel_event, timeout=timeout
        ).raise_for_failure()

    def try_bulk_apply(
        self,
        bulk: BulkMutation,
        *,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> BulkApplyResult:
        """
        Same as [`bulk_apply()`][widecolumn.handlers.Table.bulk_apply], but
        returns the outcome instead of raising on failure.

        Returns:
            BulkApplyResult: The failed mutations (empty on success) and, when
                the operation was stopped by a failed stream, its last status.
        """
        mutator = _BulkMutator(
            self._name,
            bulk,
            stub=self._stub,
            retry_policy=self._config.retry_policy.clone(),
            backoff_policy=self._config.backoff_policy.clone(),
            idempotency_policy=self._config.idempotency_policy.clone(),
            cancel_event=cancel_event,
            timeout=timeout if timeout is not None else self._config.timeout,
        )
        result = mutator.run()
        logger.debug(
            f"Bulk apply of {len(bulk)} mutation(s) on table '{self._name}' "
            f"completed in {mutator.rounds} round(s)"
        )
        return result

    def apply(
        self,
        mutation: RowMutation,
        *,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Applies a single row mutation, with the same retry semantics as
        [`bulk_apply()`][widecolumn.handlers.Table.bulk_apply].

        Raises:
            PermanentMutationFailure: If the mutation could not be applied.
        """
        self.bulk_apply(BulkMutation(mutation), cancel_event=cancel_event, timeout=timeout)
