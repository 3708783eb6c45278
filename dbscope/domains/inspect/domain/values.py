"""Typed scalar cell values.

Every cell that comes back from the inspected process (page data, table
structure, query results) is a ``Value``: a type tag plus a native Python
payload. Downstream code switches on ``Value.type`` and never on the remote
side's own type system.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

# Largest integer a double represents exactly; larger ints travel as bigint.
MAX_SAFE_INTEGER = 2**53 - 1


class ValueType(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    BIGINT = "bigint"
    STRING = "string"
    BYTES = "bytes"
    UNKNOWN = "unknown"


# Tags emitted by the device-side drivers, mapped onto ValueType.
_WIRE_ALIASES: dict[str, ValueType] = {
    "null": ValueType.NULL,
    "boolean": ValueType.BOOLEAN,
    "bool": ValueType.BOOLEAN,
    "number": ValueType.NUMBER,
    "integer": ValueType.NUMBER,
    "float": ValueType.NUMBER,
    "double": ValueType.NUMBER,
    "long": ValueType.NUMBER,
    "bigint": ValueType.BIGINT,
    "string": ValueType.STRING,
    "text": ValueType.STRING,
    "bytes": ValueType.BYTES,
    "blob": ValueType.BYTES,
}


_TRUE_WORDS = frozenset({"true", "t", "1", "yes"})
_FALSE_WORDS = frozenset({"false", "f", "0", "no", ""})


@dataclass(frozen=True)
class Value:
    """A single typed cell."""

    type: ValueType
    value: Any = None

    @classmethod
    def null(cls) -> Value:
        return cls(ValueType.NULL, None)

    @classmethod
    def boolean(cls, value: bool) -> Value:
        return cls(ValueType.BOOLEAN, bool(value))

    @classmethod
    def number(cls, value: int | float) -> Value:
        if isinstance(value, int) and abs(value) > MAX_SAFE_INTEGER:
            return cls.bigint(value)
        return cls(ValueType.NUMBER, value)

    @classmethod
    def bigint(cls, value: int) -> Value:
        return cls(ValueType.BIGINT, int(value))

    @classmethod
    def string(cls, value: str) -> Value:
        return cls(ValueType.STRING, str(value))

    @classmethod
    def bytes_(cls, value: bytes) -> Value:
        return cls(ValueType.BYTES, bytes(value))

    @classmethod
    def unknown(cls, value: Any) -> Value:
        return cls(ValueType.UNKNOWN, value)

    @property
    def is_null(self) -> bool:
        return self.type is ValueType.NULL

    def is_true(self) -> bool:
        """True only for a boolean cell holding true."""
        return self.type is ValueType.BOOLEAN and self.value is True

    def as_str(self) -> str | None:
        """The payload if this is a string cell, else None."""
        return self.value if self.type is ValueType.STRING else None

    @classmethod
    def from_python(cls, obj: Any) -> Value:
        """Wrap a native Python scalar."""
        if obj is None:
            return cls.null()
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int | float):
            return cls.number(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, bytes | bytearray | memoryview):
            return cls.bytes_(bytes(obj))
        return cls.unknown(obj)

    @classmethod
    def from_wire(cls, obj: Any) -> Value:
        """Decode a ``{type, value}`` mapping received from the remote side.

        Bare scalars are accepted too and wrapped with ``from_python``.
        """
        if not isinstance(obj, Mapping):
            return cls.from_python(obj)

        tag = str(obj.get("type", "")).lower()
        payload = obj.get("value")
        value_type = _WIRE_ALIASES.get(tag)

        if value_type is None:
            return cls.unknown(payload)
        if value_type is ValueType.NULL or payload is None:
            return cls.null()
        if value_type is ValueType.BOOLEAN:
            return cls.boolean(_decode_bool(payload))
        if value_type is ValueType.NUMBER:
            if isinstance(payload, str):
                return cls.number(float(payload) if "." in payload else int(payload))
            return cls.number(payload)
        if value_type is ValueType.BIGINT:
            return cls.bigint(int(payload))
        if value_type is ValueType.STRING:
            return cls.string(payload)
        if value_type is ValueType.BYTES:
            return cls.bytes_(_decode_bytes(payload))
        return cls.unknown(payload)

    def to_wire(self) -> dict[str, Any]:
        """Encode as the ``{type, value}`` mapping used on the wire."""
        if self.type is ValueType.BYTES:
            return {"type": self.type.value, "value": base64.b64encode(self.value).decode("ascii")}
        if self.type is ValueType.BIGINT:
            return {"type": self.type.value, "value": str(self.value)}
        return {"type": self.type.value, "value": self.value}


def _decode_bool(payload: Any) -> bool:
    if isinstance(payload, str):
        text = payload.strip().lower()
        if text in _TRUE_WORDS:
            return True
        if text in _FALSE_WORDS:
            return False
        raise ValueError(f"Not a boolean: {payload!r}")
    return bool(payload)


def _decode_bytes(payload: Any) -> bytes:
    if isinstance(payload, bytes | bytearray):
        return bytes(payload)
    if isinstance(payload, list):
        return bytes(b & 0xFF for b in payload)
    try:
        return base64.b64decode(str(payload), validate=True)
    except (binascii.Error, ValueError):
        return str(payload).encode("utf-8")


def row_from_wire(cells: Any) -> list[Value]:
    return [Value.from_wire(cell) for cell in cells or []]


def rows_from_wire(rows: Any) -> list[list[Value]]:
    return [row_from_wire(row) for row in rows or []]
