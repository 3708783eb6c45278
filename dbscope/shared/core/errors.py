"""Exception hierarchy for dbscope."""

from __future__ import annotations


class DbscopeError(Exception):
    """Base class for all dbscope errors."""


class RemoteCallError(DbscopeError):
    """A request to the inspected process failed.

    Covers transport failures as well as exceptions reported by the remote
    side. The message is what ends up in the error bar.
    """

    def __init__(self, method: str, message: str):
        super().__init__(message)
        self.method = method
        self.message = message

    def __str__(self) -> str:
        return self.message


class ProtocolError(RemoteCallError):
    """The remote side answered with a payload of the wrong shape."""


class MetadataShapeError(DbscopeError):
    """Table structure metadata lacks a column the row editor depends on."""


class CoercionError(DbscopeError):
    """An edited cell value cannot be converted to the column's declared type."""

    def __init__(self, column: str, message: str):
        super().__init__(f"{column}: {message}")
        self.column = column
