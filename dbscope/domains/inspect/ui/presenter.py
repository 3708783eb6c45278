"""Map inspector state onto plain rows and labels for rendering.

Nothing here knows about widgets; the Textual app (and tests) consume these
views directly. All cell text is plain, callers escape it for markup.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from dbscope.domains.inspect.domain.models import (
    InspectorState,
    Page,
    QueriedTable,
    Query,
    QueryResult,
    Structure,
    ViewMode,
)
from dbscope.domains.inspect.domain.values import Value, ValueType
from dbscope.shared.core.utils import format_duration_ms

MAX_BYTES_PREVIEW = 32


@dataclass(frozen=True)
class TableView:
    columns: list[str]
    rows: list[list[str]]
    highlighted_rows: tuple[int, ...] = ()


@dataclass(frozen=True)
class QueryResultView:
    table: TableView | None = None
    message: str | None = None


@dataclass(frozen=True)
class PageInfo:
    label: str
    can_go_back: bool
    can_go_forward: bool


def render_value(value: Value) -> str:
    if value.type is ValueType.NULL:
        return "NULL"
    if value.type is ValueType.BOOLEAN:
        return "true" if value.value else "false"
    if value.type is ValueType.NUMBER or value.type is ValueType.BIGINT:
        return str(value.value)
    if value.type is ValueType.STRING:
        return value.value
    if value.type is ValueType.BYTES:
        preview = value.value[:MAX_BYTES_PREVIEW].hex()
        suffix = "…" if len(value.value) > MAX_BYTES_PREVIEW else ""
        return f"0x{preview}{suffix}"
    if value.type is ValueType.UNKNOWN:
        return str(value.value)
    raise ValueError(f"Unhandled value type: {value.type}")


def _table(columns: Sequence[str], rows: Iterable[Sequence[Value]], highlighted: tuple[int, ...] = ()) -> TableView:
    return TableView(
        columns=list(columns),
        rows=[[render_value(cell) for cell in row] for row in rows],
        highlighted_rows=highlighted,
    )


def page_view(page: Page | None) -> TableView | None:
    if page is None:
        return None
    return _table(page.columns, page.rows, page.highlighted_rows)


def structure_views(structure: Structure | None) -> tuple[TableView, TableView] | None:
    """Column metadata and index metadata of the selected table."""
    if structure is None:
        return None
    return (
        _table(structure.columns, structure.rows),
        _table(structure.indexes_columns, structure.indexes_values),
    )


def query_result_view(result: QueryResult | None) -> QueryResultView | None:
    if result is None:
        return None
    if result.table is not None:
        table = result.table
        return QueryResultView(table=_table(table.columns, table.rows, table.highlighted_rows))
    if result.inserted_id is not None:
        return QueryResultView(message=f"Row id: {result.inserted_id}")
    if result.affected_count is not None:
        return QueryResultView(message=f"Rows affected: {result.affected_count}")
    return None


def history_view(history: Iterable[Query]) -> TableView:
    return TableView(columns=["Time", "Query"], rows=[[query.time, query.value] for query in history])


def detail_rows(columns: Sequence[str], row: Sequence[Value]) -> list[tuple[str, str]]:
    """(column, value) pairs for the row detail sidebar."""
    return [(column, render_value(cell)) for column, cell in zip(columns, row)]


def highlighted_detail(state: InspectorState) -> list[tuple[str, str]] | None:
    """Detail rows for the single highlighted row of the visible table, if any."""
    if state.view_mode is ViewMode.DATA:
        table: Page | QueriedTable | None = state.current_page
    elif state.view_mode is ViewMode.SQL and state.query_result is not None:
        table = state.query_result.table
    else:
        return None
    if table is None:
        return None
    columns, rows, highlighted = table.columns, table.rows, table.highlighted_rows
    if len(highlighted) != 1 or not 0 <= highlighted[0] < len(rows):
        return None
    return detail_rows(columns, rows[highlighted[0]])


def edit_prefill(value: Value) -> str:
    """Editable text for a cell: the full value, never a truncated preview."""
    if value.type is ValueType.NULL:
        return ""
    if value.type is ValueType.BYTES:
        return "0x" + value.value.hex()
    return render_value(value)


def page_info(page: Page) -> PageInfo:
    if page.count == page.total:
        label = f"{page.count} of {page.total} rows"
    else:
        label = f"{page.start + 1}-{page.start + page.count} of {page.total} rows"
    return PageInfo(
        label=label,
        can_go_back=page.start > 0,
        can_go_forward=page.start + page.count < page.total,
    )


def parse_row_input(text: str) -> int | None:
    """Convert the 1-based row number typed by the user to a 0-based offset."""
    try:
        return int(text.strip()) - 1
    except ValueError:
        return None


def database_options(state: InspectorState) -> list[tuple[str, int]]:
    return [(database.name, database.id) for database in state.databases]


def table_options(state: InspectorState) -> list[str]:
    return list(state.tables_for(state.selected_database))


def execution_time_label(state: InspectorState) -> str | None:
    if state.view_mode is not ViewMode.SQL or not state.execution_time:
        return None
    return format_duration_ms(state.execution_time)


def is_favorite(state: InspectorState) -> bool:
    return state.query is not None and state.query.value in state.favorites
