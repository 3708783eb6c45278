"""Pure state transitions for the inspector.

Every function takes the current ``InspectorState`` (plus the event payload)
and returns a new one; nothing here mutates its input or talks to the remote
side. Any transition that moves the database or table selection also resets
the pagination cursor and drops the page and structure fetched for the old
selection.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from dbscope.domains.inspect.domain.models import (
    PAGE_SIZE,
    DatabaseEntry,
    InspectorState,
    Page,
    Query,
    QueryResult,
    SortOrder,
    Structure,
    ViewMode,
)


def _clear_selection_data(state: InspectorState, **changes) -> InspectorState:
    return replace(
        state,
        page_row_number=0,
        current_page=None,
        current_structure=None,
        current_sort=None,
        table_info="",
        **changes,
    )


def update_databases(state: InspectorState, databases: Iterable[DatabaseEntry]) -> InspectorState:
    """Replace the database list after a refresh and re-derive the selection."""
    ordered = tuple(sorted(databases, key=lambda db: db.id))
    by_id = {db.id: db for db in ordered}

    if state.selected_database in by_id:
        selected_database: int | None = state.selected_database
    else:
        selected_database = ordered[0].id if ordered else None

    tables = by_id[selected_database].tables if selected_database is not None else ()
    if state.selected_table is not None and state.selected_table in tables:
        selected_table: str | None = state.selected_table
    else:
        selected_table = tables[0] if tables else None

    same_table_selected = (
        selected_database == state.selected_database and selected_table == state.selected_table
    )
    if same_table_selected:
        # Page and sort survive a list refresh; the schema may have changed.
        return replace(state, databases=ordered, outdated_database_list=False, current_structure=None)
    return _clear_selection_data(
        state,
        databases=ordered,
        outdated_database_list=False,
        selected_database=selected_database,
        selected_table=selected_table,
    )


def update_selected_database(state: InspectorState, database_id: int) -> InspectorState:
    tables = state.tables_for(database_id)
    return _clear_selection_data(
        state,
        selected_database=database_id,
        selected_table=tables[0] if tables else None,
    )


def update_selected_table(state: InspectorState, table: str) -> InspectorState:
    return _clear_selection_data(state, selected_table=table)


def update_view_mode(state: InspectorState, view_mode: ViewMode) -> InspectorState:
    return replace(state, view_mode=ViewMode(view_mode), error=None)


def update_page(state: InspectorState, page: Page) -> InspectorState:
    return replace(state, current_page=page)


def update_structure(state: InspectorState, structure: Structure) -> InspectorState:
    return replace(state, current_structure=structure)


def update_table_info(state: InspectorState, definition: str) -> InspectorState:
    return replace(state, table_info=definition)


def next_page(state: InspectorState) -> InspectorState:
    return replace(state, page_row_number=state.page_row_number + PAGE_SIZE, current_page=None)


def previous_page(state: InspectorState) -> InspectorState:
    return replace(state, page_row_number=max(state.page_row_number - PAGE_SIZE, 0), current_page=None)


def go_to_row(state: InspectorState, row: int) -> InspectorState:
    """Jump to ``row`` (0-based), clamped so the last page stays full."""
    page = state.current_page
    if page is None:
        return state
    last_start = max(page.total - PAGE_SIZE, 0)
    destination = min(max(row, 0), last_start)
    return replace(state, page_row_number=destination, current_page=None)


def sort_by_changed(state: InspectorState, order: SortOrder | None) -> InspectorState:
    return replace(state, current_sort=order, page_row_number=0, current_page=None)


def refresh(state: InspectorState) -> InspectorState:
    return replace(state, outdated_database_list=True, current_page=None)


def set_error(state: InspectorState, message: str) -> InspectorState:
    return replace(state, error=message)


def clear_error(state: InspectorState) -> InspectorState:
    if state.error is None:
        return state
    return replace(state, error=None)


def mark_database_list_failed(state: InspectorState, message: str) -> InspectorState:
    return replace(state, error=message, outdated_database_list=False)


def update_query(state: InspectorState, text: str, time: str) -> InspectorState:
    return replace(state, query=Query(value=text, time=time))


def select_favorite(state: InspectorState, text: str, time: str) -> InspectorState:
    """Load a favourite into the query buffer."""
    return update_query(state, text, time)


def load_favorites(state: InspectorState, favorites: Iterable[str]) -> InspectorState:
    return replace(state, favorites=tuple(favorites))


def toggle_favorite(state: InspectorState, favorites: Iterable[str] | None = None) -> InspectorState:
    """Add the current query to the favourites, or remove it if present.

    ``favorites`` replaces the base list the toggle applies to.
    """
    current = list(favorites) if favorites is not None else list(state.favorites)
    if state.query is not None:
        value = state.query.value
        if value in current:
            current.remove(value)
        else:
            current.append(value)
    return replace(state, favorites=tuple(current))


def record_submission(state: InspectorState, time: str) -> InspectorState:
    """Stamp the query buffer with its submission time and append it to the history."""
    if state.query is None or not state.query.value:
        return state
    submitted = replace(state.query, time=time)
    return replace(state, query=submitted, query_history=state.query_history + (submitted,))


def set_query_result(state: InspectorState, result: QueryResult | None) -> InspectorState:
    return replace(state, query_result=result)


def record_execution(state: InspectorState, result: QueryResult, elapsed_ms: float) -> InspectorState:
    """Store a successful execution outcome and how long it took."""
    return replace(set_query_result(state, result), execution_time=elapsed_ms, error=None)


def highlight_page_rows(state: InspectorState, rows: Iterable[int]) -> InspectorState:
    if state.current_page is None:
        return state
    return replace(state, current_page=replace(state.current_page, highlighted_rows=tuple(rows)))


def highlight_query_rows(state: InspectorState, rows: Iterable[int]) -> InspectorState:
    result = state.query_result
    if result is None or result.table is None:
        return state
    table = replace(result.table, highlighted_rows=tuple(rows))
    return replace(state, query_result=replace(result, table=table))
