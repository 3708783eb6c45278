"""Turn a cell edit on the highlighted row into a primary-key scoped UPDATE.

Structure metadata is read by field name. The metadata provider reports one
row per table column with at least ``column_name``, ``data_type`` and
``primary_key``; ``nullable`` is optional and defaults to true.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace

from loguru import logger

from dbscope.domains.inspect.domain.models import InspectorState, Page, Structure, ViewMode
from dbscope.domains.inspect.domain.values import Value, ValueType
from dbscope.shared.core.errors import CoercionError, MetadataShapeError

PRIMARY_KEY = "primary_key"
COLUMN_NAME = "column_name"
DATA_TYPE = "data_type"
NULLABLE = "nullable"

INTEGER_TYPES = frozenset({"INTEGER", "INT", "LONG", "BIGINT", "SMALLINT", "TINYINT", "MEDIUMINT"})
REAL_TYPES = frozenset({"REAL", "DOUBLE", "FLOAT", "NUMERIC", "DECIMAL"})
BOOLEAN_TYPES = frozenset({"BOOLEAN", "BOOL"})
BLOB_TYPES = frozenset({"BLOB"})

_TRUE_WORDS = frozenset({"true", "1", "t", "yes"})
_FALSE_WORDS = frozenset({"false", "0", "f", "no"})
_BASE_TYPE = re.compile(r"\s*([A-Za-z]+)")
_HEX_LITERAL = re.compile(r"^(?:0x([0-9a-fA-F]*)|[xX]'([0-9a-fA-F]*)')$")


@dataclass(frozen=True)
class ColumnType:
    type: str
    nullable: bool = True


@dataclass(frozen=True)
class RowEdit:
    """An UPDATE statement plus the page as it looks once the edit applies."""

    statement: str
    page: Page
    values: dict[str, Value]


def is_updatable(structure: Structure | None) -> bool:
    """True if the structure marks at least one primary key column."""
    if structure is None or PRIMARY_KEY not in structure.columns:
        return False
    pk_idx = structure.columns.index(PRIMARY_KEY)
    return any(len(row) > pk_idx and row[pk_idx].is_true() for row in structure.rows)


def _metadata_index(structure: Structure, name: str) -> int:
    try:
        return structure.columns.index(name)
    except ValueError:
        raise MetadataShapeError(f"Structure metadata has no {name!r} column") from None


def primary_key_columns(structure: Structure) -> list[str]:
    """Names of the columns flagged as primary key, in metadata order."""
    pk_idx = _metadata_index(structure, PRIMARY_KEY)
    name_idx = _metadata_index(structure, COLUMN_NAME)
    names = []
    for row in structure.rows:
        if row[pk_idx].is_true():
            name = row[name_idx].as_str()
            if name is not None:
                names.append(name)
    return names


def column_types(structure: Structure) -> dict[str, ColumnType]:
    name_idx = _metadata_index(structure, COLUMN_NAME)
    type_idx = _metadata_index(structure, DATA_TYPE)
    nullable_idx = structure.columns.index(NULLABLE) if NULLABLE in structure.columns else -1

    types: dict[str, ColumnType] = {}
    for row in structure.rows:
        name = row[name_idx].as_str()
        declared = row[type_idx].as_str()
        if name is None or declared is None:
            continue
        nullable = nullable_idx < 0 or row[nullable_idx].value is not False
        types[name] = ColumnType(type=declared, nullable=nullable)
    return types


def base_type(declared: str) -> str:
    """Leading keyword of a declared type, e.g. ``VARCHAR(20)`` -> ``VARCHAR``."""
    match = _BASE_TYPE.match(declared)
    return match.group(1).upper() if match else ""


def coerce_value(types: Mapping[str, ColumnType], column: str, raw: str | None) -> Value:
    """Convert user input for ``column`` into a typed value.

    Raises:
        CoercionError: If the input does not fit the column's declared type.
    """
    column_type = types.get(column)
    if column_type is None:
        # No metadata: treat as a nullable text column.
        return Value.null() if not raw else Value.string(raw)

    if raw is None or raw == "":
        if column_type.nullable:
            return Value.null()
        if raw is None:
            raise CoercionError(column, "column is not nullable")

    kind = base_type(column_type.type)
    text = raw.strip()
    if kind in INTEGER_TYPES:
        try:
            return Value.number(int(text))
        except ValueError:
            raise CoercionError(column, f"{raw!r} is not an integer") from None
    if kind in REAL_TYPES:
        try:
            return Value.number(float(text))
        except ValueError:
            raise CoercionError(column, f"{raw!r} is not a number") from None
    if kind in BOOLEAN_TYPES:
        lowered = text.lower()
        if lowered in _TRUE_WORDS:
            return Value.boolean(True)
        if lowered in _FALSE_WORDS:
            return Value.boolean(False)
        raise CoercionError(column, f"{raw!r} is not a boolean")
    if kind in BLOB_TYPES:
        hex_match = _HEX_LITERAL.match(text)
        if hex_match:
            digits = hex_match.group(1) if hex_match.group(1) is not None else hex_match.group(2)
            try:
                return Value.bytes_(bytes.fromhex(digits))
            except ValueError:
                raise CoercionError(column, f"{raw!r} is not valid hex") from None
        return Value.bytes_(raw.encode("utf-8"))
    return Value.string(raw)


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def render_literal(value: Value) -> str:
    """Render a value as a SQL literal."""
    if value.type is ValueType.NULL:
        return "NULL"
    if value.type is ValueType.BOOLEAN:
        return "TRUE" if value.value else "FALSE"
    if value.type is ValueType.NUMBER or value.type is ValueType.BIGINT:
        return str(value.value)
    if value.type is ValueType.STRING:
        return "'" + value.value.replace("'", "''") + "'"
    if value.type is ValueType.BYTES:
        return "X'" + value.value.hex() + "'"
    if value.type is ValueType.UNKNOWN:
        return "'" + str(value.value).replace("'", "''") + "'"
    raise ValueError(f"Unhandled value type: {value.type}")


def _assignment(column: str, value: Value) -> str:
    return f"{quote_identifier(column)} = {render_literal(value)}"


def _predicate(column: str, value: Value) -> str:
    if value.is_null:
        return f"{quote_identifier(column)} IS NULL"
    return _assignment(column, value)


def construct_update_statement(table: str, where: Mapping[str, Value], changes: Mapping[str, Value]) -> str:
    set_clause = ", ".join(_assignment(column, value) for column, value in changes.items())
    where_clause = " AND ".join(_predicate(column, value) for column, value in where.items())
    return f"UPDATE {quote_identifier(table)} SET {set_clause} WHERE {where_clause}"


def patch_page(page: Page, row_idx: int, values: Mapping[str, Value]) -> Page:
    """Copy of ``page`` with the given cells of one row overwritten."""
    row = list(page.rows[row_idx])
    for column, value in values.items():
        if column in page.columns:
            row[page.columns.index(column)] = value
    rows = list(page.rows)
    rows[row_idx] = row
    return replace(page, rows=rows)


def build_row_edit(state: InspectorState, change: Mapping[str, str | None]) -> RowEdit | None:
    """Build the UPDATE for an edit of the highlighted row, or None if it cannot be scoped.

    Only the data view is editable, exactly one row must be highlighted and
    the structure of the selected table must be loaded.
    """
    page = state.current_page
    structure = state.current_structure
    table = state.selected_table
    if (
        state.view_mode is not ViewMode.DATA
        or table is None
        or page is None
        or structure is None
        or len(page.highlighted_rows) != 1
        or not change
    ):
        return None

    row_idx = page.highlighted_rows[0]
    if not 0 <= row_idx < len(page.rows):
        return None
    row = page.rows[row_idx]

    try:
        pk_names = primary_key_columns(structure)
        types = column_types(structure)
    except MetadataShapeError as error:
        logger.error("Cannot build row update for {}: {}", table, error)
        return None

    pk_indexes = [page.columns.index(name) for name in pk_names if name in page.columns]
    if not pk_indexes:
        logger.warning("Table {} has no primary key in the current page; edit ignored", table)
        return None

    values: dict[str, Value] = {}
    for column, raw in change.items():
        try:
            values[column] = coerce_value(types, column, raw)
        except CoercionError as error:
            logger.error("Skipping edit of {}.{}", table, error)
    if not values:
        return None

    where = {page.columns[idx]: row[idx] for idx in pk_indexes}
    return RowEdit(
        statement=construct_update_statement(table, where, values),
        page=patch_page(page, row_idx, values),
        values=values,
    )
