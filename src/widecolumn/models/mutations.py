"""
Mutation Models Module.

This module defines the value types describing the changes requested on a
wide-column table: cell-level mutations, the `RowMutation` grouping them under
a single row key, and the `BulkMutation` batch submitted by
[`Table.bulk_apply()`][widecolumn.handlers.Table.bulk_apply].

All the cell and row mutation types are immutable pydantic models: once built,
a mutation can be safely resent across retry rounds and reported back to the
caller on failure.
"""

from typing import Annotated, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _CellMutationBase(BaseModel):
    """Common configuration of every cell-level mutation."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class SetCell(_CellMutationBase):
    """
    Sets the value of a cell.

    When `timestamp_micros` is `None` the server assigns the cell timestamp at
    application time: applying the mutation twice creates two cell versions,
    hence such a mutation is **not** idempotent.
    """

    kind: Literal["set_cell"] = "set_cell"
    family: str
    column: bytes
    value: bytes
    timestamp_micros: Optional[int] = None
    """The cell timestamp in microseconds; `None` means server-assigned time."""

    @field_validator("timestamp_micros")
    @classmethod
    def _check_timestamp(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("Cell timestamp must be non-negative")
        return value


class DeleteFromColumn(_CellMutationBase):
    """
    Deletes the cells of a column, optionally restricted to the timestamp range
    `[start_micros, end_micros)`.
    """

    kind: Literal["delete_from_column"] = "delete_from_column"
    family: str
    column: bytes
    start_micros: Optional[int] = None
    end_micros: Optional[int] = None

    @model_validator(mode="after")
    def _check_range(self) -> "DeleteFromColumn":
        if (
            self.start_micros is not None
            and self.end_micros is not None
            and self.start_micros > self.end_micros
        ):
            raise ValueError(
                f"Invalid timestamp range [{self.start_micros}, {self.end_micros})"
            )
        return self


class DeleteFromFamily(_CellMutationBase):
    """Deletes all the cells of a column family in the row."""

    kind: Literal["delete_from_family"] = "delete_from_family"
    family: str


class DeleteFromRow(_CellMutationBase):
    """Deletes all the cells in the row."""

    kind: Literal["delete_from_row"] = "delete_from_row"


CellMutation = Annotated[
    Union[SetCell, DeleteFromColumn, DeleteFromFamily, DeleteFromRow],
    Field(discriminator="kind"),
]


class RowMutation(BaseModel):
    """
    An ordered set of cell mutations scoped to a single row.

    Attributes:
        row_key (bytes): The (non-empty) key of the mutated row.
        mutations (Tuple[CellMutation, ...]): The cell mutations, applied in order.

    Example:
        ```python
        from widecolumn import RowMutation, SetCell, DeleteFromFamily

        mutation = RowMutation(
            row_key=b"user#0042",
            mutations=[
                SetCell(family="fam", column=b"col", value=b"v", timestamp_micros=0),
                DeleteFromFamily(family="tmp"),
            ],
        )
        ```
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    row_key: bytes
    mutations: Tuple[CellMutation, ...]

    @field_validator("row_key")
    @classmethod
    def _check_row_key(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("Empty row key")
        return value

    @field_validator("mutations")
    @classmethod
    def _check_mutations(cls, value: Tuple[CellMutation, ...]):
        if not value:
            raise ValueError("A row mutation requires at least one cell mutation")
        return value


class BulkMutation:
    """
    An ordered batch of [`RowMutation`][widecolumn.models.RowMutation] objects.

    The position of each mutation in the batch (its *original index*) is the only
    identity used to report failures back to the caller.
    """

    def __init__(self, *mutations: RowMutation):
        self._mutations: List[RowMutation] = []
        for mutation in mutations:
            self.push_back(mutation)

    def push_back(self, mutation: RowMutation) -> "BulkMutation":
        """Appends a row mutation at the end of the batch."""
        if not isinstance(mutation, RowMutation):
            raise TypeError(
                f"Expected a RowMutation, got '{type(mutation).__name__}'"
            )
        self._mutations.append(mutation)
        return self

    def emplace_back(self, row_key: bytes, *mutations: CellMutation) -> "BulkMutation":
        """Builds a row mutation from its parts and appends it to the batch."""
        return self.push_back(RowMutation(row_key=row_key, mutations=mutations))

    def __len__(self) -> int:
        return len(self._mutations)

    def __iter__(self) -> Iterator[RowMutation]:
        return iter(self._mutations)

    def __getitem__(self, index: int) -> RowMutation:
        return self._mutations[index]

    def __repr__(self) -> str:
        return f"BulkMutation({len(self._mutations)} rows)"
