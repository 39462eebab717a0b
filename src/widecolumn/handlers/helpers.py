"""
Helper Utilities.

Provides utility functions for exception chaining and table name validation.
"""

import string
from typing import Optional

# Set the supported chars for table names
_SUPPORTED_TABLE_NAME_CHARS = set(
    string.ascii_letters  # a-zA-Z
    + string.digits  # 0-9
    + "-_."
)


def _make_exception(msg: str, exc_msg: Optional[BaseException] = None) -> Exception:
    """
    Creates a new exception that chains an inner exception's message.
    Useful for adding context to low-level Flight errors.

    Args:
        msg (str): The high-level error message.
        exc_msg (Optional[Exception]): The original exception.

    Returns:
        Exception: A new exception combining both messages.
    """
    if exc_msg is None:
        return Exception(msg)
    else:
        return Exception(f"{msg}\nInner err: {exc_msg}")


def _validate_table_name(name: str):
    if not name:
        raise ValueError("Empty table name")
    # Check the first char is alphanumeric
    if not name[0].isalnum():
        raise ValueError("Table name does not begin with a letter or a number.")
    # Check the name does not contain unsupported chars
    unsupported_chars = [ch for ch in name if ch not in _SUPPORTED_TABLE_NAME_CHARS]
    if unsupported_chars:
        raise ValueError(f"Table name contains invalid characters: {unsupported_chars}")
