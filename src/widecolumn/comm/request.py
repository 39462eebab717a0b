"""
Wire Format Module.

Converts the mutations of a round into the Arrow record batch sent over the
`DoExchange` stream, and the response record batches back into entries.
The conversion is lossless and order preserving: the `i`-th row of the
request batch is the `i`-th mutation of the request.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

import pyarrow as pa
from pydantic import TypeAdapter

from ..enum import StatusCode
from ..models import CellMutation, RowMutation, Status

MUTATE_ROWS_ACTION = "mutate_rows"

CELL_MUTATION_STRUCT = pa.struct(
    [
        pa.field("kind", pa.string(), nullable=False),
        pa.field("family", pa.string()),
        pa.field("column", pa.binary()),
        pa.field("value", pa.binary()),
        pa.field("timestamp_micros", pa.int64()),
        pa.field("start_micros", pa.int64()),
        pa.field("end_micros", pa.int64()),
    ]
)

REQUEST_SCHEMA = pa.schema(
    [
        pa.field("row_key", pa.binary(), nullable=False),
        pa.field("mutations", pa.list_(CELL_MUTATION_STRUCT), nullable=False),
    ]
)

RESPONSE_SCHEMA = pa.schema(
    [
        pa.field("index", pa.int64(), nullable=False),
        pa.field("code", pa.int32(), nullable=False),
        pa.field("message", pa.string()),
    ]
)

_cell_mutation_adapter: TypeAdapter = TypeAdapter(CellMutation)


@dataclass(frozen=True)
class MutateRowsRequest:
    """
    The request of a single round.

    Attributes:
        table_name (str): The name of the mutated table.
        entries (Tuple[RowMutation, ...]): The mutations sent in the round.
    """

    table_name: str
    entries: Tuple[RowMutation, ...]

    def command(self) -> bytes:
        """The Flight descriptor command routing the request to its table."""
        return json.dumps(
            {"action": MUTATE_ROWS_ACTION, "table_name": self.table_name}
        ).encode("utf-8")

    def to_record_batch(self) -> pa.RecordBatch:
        return pa.record_batch(
            [
                pa.array([m.row_key for m in self.entries], type=pa.binary()),
                pa.array(
                    [
                        [cell.model_dump() for cell in m.mutations]
                        for m in self.entries
                    ],
                    type=pa.list_(CELL_MUTATION_STRUCT),
                ),
            ],
            schema=REQUEST_SCHEMA,
        )

    @classmethod
    def from_record_batch(
        cls, table_name: str, batch: Union[pa.RecordBatch, pa.Table]
    ) -> "MutateRowsRequest":
        """Decodes a request received by a server (used by test servers and tools)."""
        entries = []
        for row in batch.to_pylist():
            cells = [
                _cell_mutation_adapter.validate_python(_drop_nulls(cell))
                for cell in row["mutations"]
            ]
            entries.append(RowMutation(row_key=row["row_key"], mutations=cells))
        return cls(table_name=table_name, entries=tuple(entries))


def _drop_nulls(cell: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in cell.items() if value is not None}


def entries_to_record_batch(entries: List[Tuple[int, Status]]) -> pa.RecordBatch:
    """Encodes `(relative index, status)` pairs as a response record batch."""
    return pa.record_batch(
        [
            pa.array([index for index, _ in entries], type=pa.int64()),
            pa.array([int(status.code) for _, status in entries], type=pa.int32()),
            pa.array([status.message for _, status in entries], type=pa.string()),
        ],
        schema=RESPONSE_SCHEMA,
    )


def entries_from_record_batch(batch: pa.RecordBatch) -> List[Tuple[int, Status]]:
    """
    Decodes a response record batch into `(relative index, status)` pairs.

    Raises:
        ValueError: If a column of `RESPONSE_SCHEMA` is missing, or a row has a
            null index or code.
    """
    missing = [name for name in RESPONSE_SCHEMA.names if name not in batch.schema.names]
    if missing:
        raise ValueError(f"Response batch is missing the column(s) {missing}")
    for name in ("index", "code"):
        if batch.column(name).null_count:
            raise ValueError(f"Response batch has null values in column '{name}'")
    return [
        (row["index"], Status(_to_status_code(row["code"]), row["message"] or ""))
        for row in batch.to_pylist()
    ]


def _to_status_code(code: int) -> StatusCode:
    try:
        return StatusCode(code)
    except ValueError:
        # Codes unknown to this client version
        return StatusCode.UNKNOWN
