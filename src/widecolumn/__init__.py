"""
widecolumn SDK - Python client for the wide-column storage service.

This module provides the main entry points of the resilient bulk write path:

- **WideColumnClient**: The client connecting to the service.
- **Table**: Applies batches of row mutations with retries.
- **Models**: Cell mutations, row mutations and batches.
- **Policies**: Retry, backoff and idempotency policies.

Example:
    >>> from widecolumn import WideColumnClient, BulkMutation, RowMutation, SetCell
    >>> with WideColumnClient.connect("localhost", 8815) as client:
    ...     client.open_table("events").bulk_apply(BulkMutation(...))
"""

# --- Models ---
from .models import (
    SetCell as SetCell,
    DeleteFromColumn as DeleteFromColumn,
    DeleteFromFamily as DeleteFromFamily,
    DeleteFromRow as DeleteFromRow,
    RowMutation as RowMutation,
    BulkMutation as BulkMutation,
    Status as Status,
    FailedMutation as FailedMutation,
    BulkApplyResult as BulkApplyResult,
)

# --- Policies ---
from .policies import (
    StatusClassifier as StatusClassifier,
    SafeIdempotentMutationPolicy as SafeIdempotentMutationPolicy,
    AlwaysRetryMutationPolicy as AlwaysRetryMutationPolicy,
    ExponentialBackoffPolicy as ExponentialBackoffPolicy,
    LimitedErrorCountRetryPolicy as LimitedErrorCountRetryPolicy,
    LimitedTimeRetryPolicy as LimitedTimeRetryPolicy,
)

# --- Client & Transport ---
from .comm import (
    WideColumnClient as WideColumnClient,
    FlightMutateRowsStub as FlightMutateRowsStub,
    MutateRowsStub as MutateRowsStub,
    MutateRowsStream as MutateRowsStream,
    MutateRowsEntry as MutateRowsEntry,
)

# --- Handlers ---
from .handlers import Table as Table, TableConfig as TableConfig

# --- Enums ---
from .enum import StatusCode as StatusCode, StatusCategory as StatusCategory

# --- Errors ---
from .errors import (
    WideColumnError as WideColumnError,
    PermanentMutationFailure as PermanentMutationFailure,
)

from .logging_config import (
    get_logger as get_logger,
    setup_sdk_logging as setup_sdk_logging,
)

__all__ = [
    # Client
    "WideColumnClient",
    # Logging
    "get_logger",
    "setup_sdk_logging",
    # Handlers
    "Table",
    "TableConfig",
    # Models
    "SetCell",
    "DeleteFromColumn",
    "DeleteFromFamily",
    "DeleteFromRow",
    "RowMutation",
    "BulkMutation",
    "Status",
    "FailedMutation",
    "BulkApplyResult",
    # Policies
    "StatusClassifier",
    "SafeIdempotentMutationPolicy",
    "AlwaysRetryMutationPolicy",
    "ExponentialBackoffPolicy",
    "LimitedErrorCountRetryPolicy",
    "LimitedTimeRetryPolicy",
    # Transport
    "FlightMutateRowsStub",
    "MutateRowsStub",
    "MutateRowsStream",
    "MutateRowsEntry",
    # Enums
    "StatusCode",
    "StatusCategory",
    # Errors
    "WideColumnError",
    "PermanentMutationFailure",
]


# --- Set up the top-level logger for the SDK ---

from logging import NullHandler

logging_config = get_logger()
logging_config.addHandler(NullHandler())
