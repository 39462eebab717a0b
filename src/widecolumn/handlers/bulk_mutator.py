"""
Bulk Apply Engine.

This module implements the state machine behind
[`Table.bulk_apply()`][widecolumn.handlers.Table.bulk_apply]. A bulk apply runs
as a sequence of strictly ordered *rounds*; each round sends the pending
mutations over a single MutateRows stream, reconciles the per-mutation
outcomes, and then either terminates or waits and starts a new round with the
mutations that are still pending.
"""

import threading
import time
from typing import Dict, List, Optional, Set, Tuple

from ..comm.request import MutateRowsRequest
from ..comm.stub import MutateRowsStream, MutateRowsStub
from ..enum import StatusCode
from ..logging_config import get_logger
from ..models import BulkApplyResult, BulkMutation, FailedMutation, RowMutation, Status
from ..policies import BackoffPolicy, IdempotentMutationPolicy, RetryPolicy

# Set the hierarchical logger
logger = get_logger(__name__)

_CANCEL_POLL_INTERVAL = 0.05
"""How often (in seconds) the cancel watcher checks whether its round is over"""


def _cancel_on_event(
    cancel_event: threading.Event, round_done: threading.Event, stream: MutateRowsStream
) -> None:
    while not round_done.is_set():
        if cancel_event.wait(_CANCEL_POLL_INTERVAL):
            if not round_done.is_set():
                stream.cancel()
            return


class _BulkMutator:
    """
    Runs the rounds of a single bulk apply call.

    The mutator exclusively owns its round state and policy instances: it must be
    used for one call only, and the policies passed in must not be shared (the
    caller clones the configured templates).

    **Round state:**
    - `_pending`: the original indices not resolved yet, in batch order.
    - `_failed`: the mutations that will not be retried, by original index.
    - Every original index is resolved (removed), pending, or failed; never two of them.

    **Per round:**
    1.  **Sending**: the pending mutations are sent in batch order; the position
        of a mutation in the request is its *relative* index for this round.
    2.  **Streaming**: every entry of the response stream is translated back to
        the original index and reconciled; then the terminal status is read.
    3.  **Reconciling**: successes are resolved; transient errors keep idempotent
        mutations pending and fail the others; permanent errors fail the mutation.
        Mutations without an entry stay pending if the stream itself failed (their
        outcome is undetermined); on a clean stream, only idempotent ones do.
    4.  **Continue/Stop**: with mutations still pending, the retry policy decides
        whether a new round starts after the backoff delay.
    """

    def __init__(
        self,
        table_name: str,
        bulk: BulkMutation,
        *,
        stub: MutateRowsStub,
        retry_policy: RetryPolicy,
        backoff_policy: BackoffPolicy,
        idempotency_policy: IdempotentMutationPolicy,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ):
        self._table_name = table_name
        self._mutations: List[RowMutation] = list(bulk)
        self._stub = stub
        self._retry_policy = retry_policy
        self._backoff_policy = backoff_policy
        self._cancellable = cancel_event is not None
        self._cancel_event = (
            cancel_event if cancel_event is not None else threading.Event()
        )
        self._deadline = time.monotonic() + timeout if timeout is not None else None

        self._idempotent: List[bool] = [
            idempotency_policy.is_idempotent(m) for m in self._mutations
        ]
        self._pending: List[int] = list(range(len(self._mutations)))
        self._failed: Dict[int, FailedMutation] = {}
        self._last_status: Dict[int, Status] = {}
        """The last status observed for each pending mutation"""
        self._first_transient: Optional[Status] = None
        """The first transient entry status of the current round"""
        self._rounds = 0

    @property
    def rounds(self) -> int:
        """The number of rounds (RPC attempts) issued so far."""
        return self._rounds

    def run(self) -> BulkApplyResult:
        """
        Issues rounds until every mutation is resolved or failed.

        Returns:
            BulkApplyResult: the failed mutations (empty on success) and, when the
                operation was stopped by a failed stream, its terminal status.
        """
        terminal_status: Optional[Status] = None

        while self._pending:
            interruption = self._interruption_status()
            if interruption is not None:
                terminal_status = interruption
                self._fail_pending(interruption)
                break

            channel_status, cancelled = self._make_one_request()
            if cancelled:
                if self._pending:
                    terminal_status = channel_status
                    self._fail_pending(channel_status)
                break
            if not self._pending:
                break

            round_status = self._round_status(channel_status)
            if not self._retry_policy.on_failure(round_status):
                logger.warning(
                    f"Retry policy exhausted on table '{self._table_name}' after "
                    f"{self._rounds} round(s), last status: '{round_status}'"
                )
                if not channel_status.ok():
                    terminal_status = channel_status
                for index in self._pending:
                    self._fail(index, self._last_status.get(index, round_status))
                self._pending = []
                break

            delay = self._backoff_policy.on_completion(round_status)
            if self._deadline is not None:
                delay = max(0.0, min(delay, self._deadline - time.monotonic()))
            logger.info(
                f"Retrying {len(self._pending)} mutation(s) on table "
                f"'{self._table_name}' in {delay:.3f}s (last status: '{round_status}')"
            )
            # Event.wait returns True when the wait was cancelled
            if self._cancel_event.wait(delay):
                terminal_status = Status(
                    StatusCode.CANCELLED, "Bulk apply cancelled during backoff"
                )
                self._fail_pending(terminal_status)
                break

        failures = [self._failed[index] for index in sorted(self._failed)]
        if failures:
            logger.error(
                f"Bulk apply on table '{self._table_name}' failed for "
                f"{len(failures)} of {len(self._mutations)} mutation(s)"
            )
        return BulkApplyResult(failures=failures, status=terminal_status)

    # --- Rounds ---
    def _make_one_request(self) -> Tuple[Status, bool]:
        """
        Runs a single round.

        Returns:
            The channel-level status of the stream, and whether the round was
            interrupted by the cancel event.
        """
        self._rounds += 1
        round_map = list(self._pending)
        request = MutateRowsRequest(
            table_name=self._table_name,
            entries=tuple(self._mutations[index] for index in round_map),
        )
        logger.debug(
            f"Round {self._rounds} on table '{self._table_name}': "
            f"sending {len(round_map)} mutation(s)"
        )

        stream = self._stub.mutate_rows(request, timeout=self._remaining_time())
        seen: Set[int] = set()
        resolved: Set[int] = set()
        self._first_transient = None

        round_done = threading.Event()
        if self._cancellable:
            # Unblocks a pending read() as soon as the call is cancelled
            threading.Thread(
                target=_cancel_on_event,
                args=(self._cancel_event, round_done, stream),
                name="widecolumn-cancel-watcher",
                daemon=True,
            ).start()
        try:
            while not self._cancel_event.is_set():
                entry = stream.read()
                if entry is None:
                    break
                if not 0 <= entry.index < len(round_map):
                    logger.warning(
                        f"Ignoring entry with out of range index {entry.index} "
                        f"(round size: {len(round_map)})"
                    )
                    continue
                if entry.index in seen:
                    logger.warning(f"Ignoring duplicated entry for index {entry.index}")
                    continue
                seen.add(entry.index)

                original = round_map[entry.index]
                if self._reconcile_entry(original, entry.status):
                    resolved.add(original)
        finally:
            round_done.set()

        if self._cancel_event.is_set():
            stream.cancel()
            stream.finish()
            self._pending = [
                index
                for index in round_map
                if index not in resolved and index not in self._failed
            ]
            return (
                Status(StatusCode.CANCELLED, "Bulk apply cancelled while streaming"),
                True,
            )

        channel_status = stream.finish()
        for relative, original in enumerate(round_map):
            if relative in seen:
                continue
            if not channel_status.ok():
                # Undetermined: no confirmation was received, retry regardless
                self._last_status[original] = channel_status
            elif not self._idempotent[original]:
                self._fail(
                    original,
                    Status(
                        StatusCode.UNKNOWN,
                        "No result received for a non-idempotent mutation",
                    ),
                )

        self._pending = [
            index
            for index in round_map
            if index not in resolved and index not in self._failed
        ]
        if not channel_status.ok():
            logger.debug(
                f"Round {self._rounds} on table '{self._table_name}' "
                f"ended with stream status '{channel_status}'"
            )
        return channel_status, False

    def _reconcile_entry(self, original: int, status: Status) -> bool:
        """Applies the outcome of a mutation; returns `True` if it was applied."""
        if status.ok():
            self._last_status.pop(original, None)
            return True
        if self._retry_policy.can_retry(status):
            if self._idempotent[original]:
                self._last_status[original] = status
                if self._first_transient is None:
                    self._first_transient = status
            else:
                # It may have been partially applied: never resend it
                self._fail(original, status)
            return False
        self._fail(original, status)
        return False

    def _round_status(self, channel_status: Status) -> Status:
        """The status describing why the last round left mutations pending."""
        if not channel_status.ok():
            return channel_status
        if self._first_transient is not None:
            return self._first_transient
        return Status(
            StatusCode.UNAVAILABLE,
            f"{len(self._pending)} mutation(s) left unresolved by the stream",
        )

    # --- State transitions ---
    def _fail(self, index: int, status: Status) -> None:
        self._last_status.pop(index, None)
        self._failed[index] = FailedMutation(
            original_index=index, mutation=self._mutations[index], status=status
        )

    def _fail_pending(self, status: Status) -> None:
        for index in self._pending:
            self._fail(index, status)
        self._pending = []

    # --- Cancellation & deadline ---
    def _remaining_time(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def _interruption_status(self) -> Optional[Status]:
        if self._cancel_event.is_set():
            return Status(StatusCode.CANCELLED, "Bulk apply cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return Status(StatusCode.DEADLINE_EXCEEDED, "Bulk apply deadline exceeded")
        return None
