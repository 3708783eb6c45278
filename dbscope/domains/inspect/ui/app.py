"""Textual application for the database inspector."""

from __future__ import annotations

from collections.abc import Coroutine
from typing import Any

from rich.markup import escape as escape_markup
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import DataTable, Static, TextArea
from textual.worker import Worker

from dbscope.domains.inspect.app.session import InspectionSession
from dbscope.domains.inspect.app.update_builder import is_updatable
from dbscope.domains.inspect.domain.models import InspectorState, SortDirection, SortOrder, ViewMode
from dbscope.domains.inspect.ui import presenter
from dbscope.domains.inspect.ui.screens import FavoritesScreen, PromptScreen
from dbscope.shared.core.protocols import FavoritesStoreProtocol, TransportProtocol

MODE_LABELS: list[tuple[ViewMode, str, str]] = [
    (ViewMode.DATA, "F1", "Data"),
    (ViewMode.STRUCTURE, "F2", "Structure"),
    (ViewMode.SQL, "F3", "SQL"),
    (ViewMode.TABLE_INFO, "F4", "Table Info"),
    (ViewMode.QUERY_HISTORY, "F6", "Query History"),
]


class InspectorApp(App):
    """Browse, query and edit the databases of an inspected process."""

    TITLE = "dbscope"

    CSS = """
    #main-container {
        height: 1fr;
    }

    #mode-bar, #selection-bar {
        height: 1;
        padding: 0 1;
        background: $panel;
    }

    #query-input {
        height: 8;
    }

    #table-row {
        height: 1fr;
    }

    #main-table {
        width: 1fr;
        height: 1fr;
    }

    #detail-table {
        width: 40;
        height: 1fr;
        border-left: solid $panel;
    }

    #index-table {
        height: 10;
        border-top: solid $panel;
    }

    #table-info {
        height: 1fr;
        padding: 1;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $panel;
    }

    #error-bar {
        height: auto;
        padding: 0 1;
        background: $error;
        color: $text;
        text-align: center;
    }
    """

    BINDINGS = [
        Binding("f1", "view_mode('data')", "Data", priority=True),
        Binding("f2", "view_mode('structure')", "Structure", priority=True),
        Binding("f3", "view_mode('SQL')", "SQL", priority=True),
        Binding("f4", "view_mode('tableInfo')", "Table Info", priority=True),
        Binding("f6", "view_mode('queryHistory')", "History", priority=True),
        Binding("f5", "execute_query", "Execute", priority=True),
        Binding("ctrl+enter", "execute_query", "Execute", show=False, priority=True),
        Binding("ctrl+r", "refresh", "Refresh", priority=True),
        Binding("ctrl+right", "next_page", "Next page", show=False, priority=True),
        Binding("ctrl+left", "previous_page", "Previous page", show=False, priority=True),
        Binding("ctrl+g", "go_to_row", "Go to row", show=False, priority=True),
        Binding("ctrl+b", "next_database", "Database", show=False, priority=True),
        Binding("ctrl+t", "next_table", "Table", show=False, priority=True),
        Binding("ctrl+u", "edit_cell", "Update cell", show=False, priority=True),
        Binding("ctrl+s", "toggle_favorite", "Star", show=False, priority=True),
        Binding("ctrl+o", "choose_favorite", "Favorites", show=False, priority=True),
    ]

    def __init__(
        self,
        transport: TransportProtocol,
        favorites_store: FavoritesStoreProtocol | None = None,
    ):
        super().__init__()
        self._transport = transport
        self.session = InspectionSession(
            transport,
            favorites_store=favorites_store,
            runner=self._run_remote,
        )
        self._rendered_sources: dict[str, Any] = {}

    def compose(self) -> ComposeResult:
        with Vertical(id="main-container"):
            yield Static("", id="mode-bar")
            yield Static("", id="selection-bar")
            yield TextArea("", id="query-input")
            with Horizontal(id="table-row"):
                yield DataTable(id="main-table", zebra_stripes=True, cursor_type="cell")
                yield DataTable(id="detail-table", zebra_stripes=True, cursor_type="row")
            yield DataTable(id="index-table", zebra_stripes=True, cursor_type="row")
            yield Static("", id="table-info", markup=False)
            yield Static("", id="status-bar")
            yield Static("", id="error-bar")

    def on_mount(self) -> None:
        self.session.subscribe(lambda state, previous: self._render_state())
        self._render_state()
        self.session.connect()

    def on_unmount(self) -> None:
        self.session.close()
        close = getattr(self._transport, "close", None)
        if callable(close):
            close()

    def _run_remote(self, work: Coroutine[Any, Any, None], name: str) -> Worker[None]:
        return self.run_worker(work, name=name, group="remote", exclusive=False)

    # Rendering

    def _render_state(self) -> None:
        state = self.session.state
        mode = state.view_mode

        self.query_one("#mode-bar", Static).update(self._mode_bar(mode))
        self.query_one("#selection-bar", Static).update(self._selection_bar(state))

        query_input = self.query_one("#query-input", TextArea)
        query_input.display = mode is ViewMode.SQL
        query_text = state.query.value if state.query is not None else ""
        if query_input.text != query_text:
            query_input.load_text(query_text)

        main_table = self.query_one("#main-table", DataTable)
        index_table = self.query_one("#index-table", DataTable)
        table_info = self.query_one("#table-info", Static)
        self.query_one("#table-row", Horizontal).display = mode is not ViewMode.TABLE_INFO
        index_table.display = mode is ViewMode.STRUCTURE
        table_info.display = mode is ViewMode.TABLE_INFO

        if mode is ViewMode.DATA:
            page = state.current_page
            self._fill_table(main_table, presenter.page_view(page), (mode, id(page.rows) if page else None))
        elif mode is ViewMode.STRUCTURE:
            views = presenter.structure_views(state.current_structure)
            source = (mode, id(state.current_structure))
            self._fill_table(main_table, views[0] if views else None, source)
            self._fill_table(index_table, views[1] if views else None, source)
        elif mode is ViewMode.SQL:
            result = presenter.query_result_view(state.query_result)
            table = result.table if result is not None else None
            rows_source = id(state.query_result.table.rows) if table is not None else None
            self._fill_table(main_table, table, (mode, rows_source))
        elif mode is ViewMode.QUERY_HISTORY:
            self._fill_table(main_table, presenter.history_view(state.query_history), (mode, state.query_history))
        elif mode is ViewMode.TABLE_INFO:
            table_info.update(state.table_info)

        self._render_detail(state)

        self.query_one("#status-bar", Static).update(self._status_bar(state))
        error_bar = self.query_one("#error-bar", Static)
        error_bar.display = state.error is not None
        error_bar.update(escape_markup(state.error or ""))

    def _render_detail(self, state: InspectorState) -> None:
        detail_table = self.query_one("#detail-table", DataTable)
        rows = presenter.highlighted_detail(state)
        detail_table.display = rows is not None
        view = None
        if rows is not None:
            view = presenter.TableView(columns=["Column", "Value"], rows=[list(row) for row in rows])
        self._fill_table(detail_table, view, rows)

    def _fill_table(self, table: DataTable, view: presenter.TableView | None, source: Any) -> None:
        if self._rendered_sources.get(table.id or "") == source:
            return
        self._rendered_sources[table.id or ""] = source
        table.clear(columns=True)
        if view is None:
            return
        table.add_columns(*(Text(column) for column in view.columns))
        table.add_rows([[Text(cell) for cell in row] for row in view.rows])
        if view.highlighted_rows and view.highlighted_rows[0] < len(view.rows):
            table.move_cursor(row=view.highlighted_rows[0])

    def _mode_bar(self, mode: ViewMode) -> str:
        parts = []
        for view_mode, key, label in MODE_LABELS:
            text = f"{key} {label}"
            parts.append(f"[reverse] {text} [/]" if view_mode is mode else f" {text} ")
        return " ".join(parts)

    def _selection_bar(self, state: InspectorState) -> str:
        database = state.database_by_id(state.selected_database)
        database_name = escape_markup(database.name) if database else "-"
        table_name = escape_markup(state.selected_table) if state.selected_table else "-"
        return f"[b]DATABASE[/] {database_name}   [b]TABLE[/] {table_name}"

    def _status_bar(self, state: InspectorState) -> str:
        parts: list[str] = []
        if state.view_mode is ViewMode.DATA and state.current_page is not None:
            info = presenter.page_info(state.current_page)
            back = "◀" if info.can_go_back else " "
            forward = "▶" if info.can_go_forward else " "
            parts.append(f"{back} {info.label} {forward}")
        if state.view_mode is ViewMode.SQL:
            elapsed = presenter.execution_time_label(state)
            if elapsed:
                parts.append(elapsed)
            result = presenter.query_result_view(state.query_result)
            if result is not None and result.message:
                parts.append(result.message)
            parts.append("★" if presenter.is_favorite(state) else "☆")
        return "  ".join(parts)

    # Events

    def on_data_table_cell_highlighted(self, event: DataTable.CellHighlighted) -> None:
        if event.data_table.id != "main-table":
            return
        state = self.session.state
        if state.view_mode is ViewMode.DATA and state.current_page is not None:
            current = state.current_page.highlighted_rows
        elif state.view_mode is ViewMode.SQL and state.query_result and state.query_result.table:
            current = state.query_result.table.highlighted_rows
        else:
            return
        if current != (event.coordinate.row,):
            self.session.highlight_rows([event.coordinate.row])

    def on_data_table_header_selected(self, event: DataTable.HeaderSelected) -> None:
        state = self.session.state
        page = state.current_page
        if event.data_table.id != "main-table" or state.view_mode is not ViewMode.DATA or page is None:
            return
        column = page.columns[event.column_index]
        current = state.current_sort
        if current is not None and current.key == column and current.direction is SortDirection.UP:
            direction = SortDirection.DOWN
        else:
            direction = SortDirection.UP
        self.session.sort_by(SortOrder(column, direction))

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        text = event.text_area.text
        query = self.session.state.query
        if query is None or query.value != text:
            self.session.update_query(text)

    # Actions

    def action_view_mode(self, mode: str) -> None:
        self.session.set_view_mode(ViewMode(mode))
        if mode == ViewMode.SQL.value:
            self.query_one("#query-input", TextArea).focus()
        else:
            self.query_one("#main-table", DataTable).focus()

    def action_execute_query(self) -> None:
        if self.session.state.view_mode is ViewMode.SQL:
            self.session.execute_current_query()

    def action_refresh(self) -> None:
        self.session.refresh()

    def action_next_page(self) -> None:
        page = self.session.state.current_page
        if page is not None and presenter.page_info(page).can_go_forward:
            self.session.next_page()

    def action_previous_page(self) -> None:
        page = self.session.state.current_page
        if page is not None and presenter.page_info(page).can_go_back:
            self.session.previous_page()

    def action_go_to_row(self) -> None:
        if self.session.state.current_page is None:
            return

        def apply(value: str | None) -> None:
            row = presenter.parse_row_input(value) if value is not None else None
            if row is not None:
                self.session.go_to_row(row)

        self.push_screen(PromptScreen("Go to row:", placeholder="1"), apply)

    def action_next_database(self) -> None:
        options = presenter.database_options(self.session.state)
        if not options:
            return
        ids = [database_id for _, database_id in options]
        current = self.session.state.selected_database
        position = ids.index(current) if current in ids else -1
        self.session.select_database(ids[(position + 1) % len(ids)])

    def action_next_table(self) -> None:
        state = self.session.state
        tables = presenter.table_options(state)
        if not tables:
            return
        position = tables.index(state.selected_table) if state.selected_table in tables else -1
        self.session.select_table(tables[(position + 1) % len(tables)])

    def action_edit_cell(self) -> None:
        state = self.session.state
        page = state.current_page
        if state.view_mode is not ViewMode.DATA or page is None or not page.rows:
            return
        if not is_updatable(state.current_structure):
            self.notify("Table has no primary key; rows cannot be edited", severity="warning")
            return
        table = self.query_one("#main-table", DataTable)
        row_idx, column_idx = table.cursor_coordinate
        if row_idx >= len(page.rows) or column_idx >= len(page.columns):
            return
        column = page.columns[column_idx]
        cell = page.rows[row_idx][column_idx]
        current = presenter.edit_prefill(cell)
        self.session.highlight_rows([row_idx])

        def apply(value: str | None) -> None:
            if value is None or value == current:
                return
            if self.session.edit_row({column: value}) is None:
                self.notify(f"Could not update {column}", severity="warning")

        self.push_screen(PromptScreen(f"New value for {column} (blank for NULL):", value=current), apply)

    def action_toggle_favorite(self) -> None:
        if self.session.state.view_mode is ViewMode.SQL:
            self.session.toggle_favorite()

    def action_choose_favorite(self) -> None:
        favorites = list(self.session.state.favorites)
        if not favorites:
            self.notify("No favorite queries yet")
            return

        def apply(value: str | None) -> None:
            if value is not None:
                self.session.select_favorite(value)

        self.push_screen(FavoritesScreen(favorites), apply)
