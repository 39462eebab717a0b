from .stub import (
    MutateRowsEntry as MutateRowsEntry,
    MutateRowsStream as MutateRowsStream,
    MutateRowsStub as MutateRowsStub,
)
from .request import MutateRowsRequest as MutateRowsRequest
from .flight_stub import FlightMutateRowsStub as FlightMutateRowsStub

# Last: the client depends on the handlers, which depend on the stub
from .widecolumn_client import WideColumnClient as WideColumnClient
