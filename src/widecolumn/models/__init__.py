from .mutations import (
    SetCell as SetCell,
    DeleteFromColumn as DeleteFromColumn,
    DeleteFromFamily as DeleteFromFamily,
    DeleteFromRow as DeleteFromRow,
    CellMutation as CellMutation,
    RowMutation as RowMutation,
    BulkMutation as BulkMutation,
)
from .status import Status as Status, OK_STATUS as OK_STATUS
from .failure import (
    FailedMutation as FailedMutation,
    BulkApplyResult as BulkApplyResult,
)
