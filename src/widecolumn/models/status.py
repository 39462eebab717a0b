"""
Status Module.

Defines the `Status` value reported by the transport for each mutation entry
and for the stream as a whole.
"""

from dataclasses import dataclass

from ..enum import StatusCode


@dataclass(frozen=True)
class Status:
    """
    The outcome of an RPC or of a single mutation within an RPC.

    Attributes:
        code (StatusCode): The canonical status code.
        message (str): An optional, human-readable error message.
    """

    code: StatusCode = StatusCode.OK
    message: str = ""

    def ok(self) -> bool:
        """Returns `True` if the status reports success."""
        return self.code == StatusCode.OK

    def __str__(self) -> str:
        if self.message:
            return f"{self.code.name}: {self.message}"
        return self.code.name


OK_STATUS = Status()
