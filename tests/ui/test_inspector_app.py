"""UI tests for the inspector app."""

from __future__ import annotations

import sqlite3

import pytest
from textual.widgets import DataTable, Input, Static, TextArea

from dbscope.domains.inspect.domain.models import ViewMode
from dbscope.domains.inspect.store.favorites import InMemoryFavoritesStore
from dbscope.domains.inspect.ui import presenter
from dbscope.domains.inspect.ui.app import InspectorApp
from dbscope.domains.inspect.ui.screens import FavoritesScreen, PromptScreen
from dbscope.mocks import create_demo_transport


async def _idle(app, pilot) -> None:
    """Wait for remote workers, including the ones their results trigger."""
    for _ in range(5):
        await app.workers.wait_for_complete()
        await pilot.pause()


def _page_label(app) -> str:
    return presenter.page_info(app.session.state.current_page).label


class TestInspectorApp:
    @pytest.mark.asyncio
    async def test_mount_shows_first_table(self):
        app = InspectorApp(create_demo_transport())

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)

            assert app.session.state.selected_table == "orders"
            assert app.query_one("#main-table", DataTable).row_count == 30
            assert app.session.state.database_by_id(app.session.state.selected_database).name == "app.db"
            assert _page_label(app) == "30 of 30 rows"

    @pytest.mark.asyncio
    async def test_table_switch_and_paging(self):
        app = InspectorApp(create_demo_transport(demo_rows=120))

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)

            await pilot.press("ctrl+t")
            await _idle(app, pilot)
            assert app.session.state.selected_table == "users"
            assert _page_label(app) == "1-50 of 120 rows"

            await pilot.press("ctrl+right")
            await _idle(app, pilot)
            assert _page_label(app) == "51-100 of 120 rows"

            await pilot.press("ctrl+left")
            await _idle(app, pilot)
            assert app.session.state.current_page.start == 0

    @pytest.mark.asyncio
    async def test_structure_mode_shows_indexes(self):
        app = InspectorApp(create_demo_transport())

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)

            await pilot.press("f2")
            await pilot.pause()

            assert app.session.state.view_mode is ViewMode.STRUCTURE
            assert app.query_one("#main-table", DataTable).row_count == 3
            assert app.query_one("#index-table", DataTable).row_count == 1

    @pytest.mark.asyncio
    async def test_execute_query_and_history(self):
        app = InspectorApp(create_demo_transport())

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)
            await pilot.press("f3")
            app.session.update_query("SELECT id FROM orders LIMIT 5")
            await pilot.pause()
            assert app.query_one("#query-input", TextArea).text == "SELECT id FROM orders LIMIT 5"

            await pilot.press("f5")
            await _idle(app, pilot)
            assert app.query_one("#main-table", DataTable).row_count == 5

            await pilot.press("f6")
            await pilot.pause()
            assert app.query_one("#main-table", DataTable).row_count == 1

    @pytest.mark.asyncio
    async def test_query_error_is_shown(self):
        app = InspectorApp(create_demo_transport())

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)
            await pilot.press("f3")
            app.session.update_query("SELECT * FROM [missing")
            await pilot.press("f5")
            await _idle(app, pilot)

            error_bar = app.query_one("#error-bar", Static)
            assert error_bar.display
            assert app.session.state.error

            await pilot.press("f1")
            await pilot.pause()
            assert not error_bar.display

    @pytest.mark.asyncio
    async def test_star_and_choose_favorite(self):
        favorites = InMemoryFavoritesStore()
        app = InspectorApp(create_demo_transport(), favorites_store=favorites)

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)
            await pilot.press("f3")
            app.session.update_query("SELECT 1")
            await pilot.press("ctrl+s")
            await pilot.pause()
            assert favorites.favorites == ["SELECT 1"]
            assert presenter.is_favorite(app.session.state)

            app.session.update_query("SELECT 2")
            await pilot.press("ctrl+o")
            await pilot.pause()
            assert isinstance(app.screen, FavoritesScreen)

            await pilot.press("down", "enter")
            await pilot.pause()
            assert app.session.state.query.value == "SELECT 1"

    @pytest.mark.asyncio
    async def test_edit_cell_writes_back(self):
        transport = create_demo_transport()
        app = InspectorApp(transport)

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)
            await pilot.press("ctrl+t")
            await _idle(app, pilot)

            table = app.query_one("#main-table", DataTable)
            table.focus()
            table.move_cursor(row=0, column=1)
            await pilot.pause()
            await pilot.press("ctrl+u")
            await pilot.pause()
            assert isinstance(app.screen, PromptScreen)

            app.screen.query_one("#prompt-input", Input).value = "Renamed"
            await pilot.press("enter")
            await _idle(app, pilot)

            connection = transport.databases[1].connection
            assert connection.execute("SELECT name FROM users WHERE id = 1").fetchone() == ("Renamed",)
            assert app.session.state.current_page.rows[0][1].value == "Renamed"

    @pytest.mark.asyncio
    async def test_go_to_row_prompt(self):
        app = InspectorApp(create_demo_transport(demo_rows=200))

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)
            await pilot.press("ctrl+t")
            await _idle(app, pilot)

            await pilot.press("ctrl+g")
            await pilot.pause()
            app.screen.query_one("#prompt-input", Input).value = "101"
            await pilot.press("enter")
            await _idle(app, pilot)

            assert app.session.state.current_page.start == 100

    @pytest.mark.asyncio
    async def test_detail_pane_follows_single_highlighted_row(self):
        app = InspectorApp(create_demo_transport())

        async with app.run_test(size=(140, 40)) as pilot:
            await _idle(app, pilot)
            table = app.query_one("#main-table", DataTable)
            table.focus()
            table.move_cursor(row=2, column=0)
            await pilot.pause()

            detail = app.query_one("#detail-table", DataTable)
            assert app.session.state.current_page.highlighted_rows == (2,)
            assert detail.display
            assert detail.row_count == len(app.session.state.current_page.columns)

            await pilot.press("f2")
            await pilot.pause()
            assert not detail.display

    @pytest.mark.asyncio
    async def test_unchanged_blob_edit_is_not_written(self):
        transport = create_demo_transport()
        app = InspectorApp(transport)

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)
            await pilot.press("ctrl+b")
            await _idle(app, pilot)
            assert app.session.state.selected_table == "entries"

            table = app.query_one("#main-table", DataTable)
            table.focus()
            table.move_cursor(row=0, column=1)
            await pilot.pause()
            await pilot.press("ctrl+u")
            await pilot.pause()

            prompt = app.screen.query_one("#prompt-input", Input)
            assert prompt.value == "0xdeadbeef"
            await pilot.press("enter")
            await _idle(app, pilot)

            assert [method for method, _ in transport.calls if method == "execute"] == []
            connection = transport.databases[2].connection
            assert connection.execute("SELECT payload FROM entries").fetchone() == (b"\xde\xad\xbe\xef",)

    @pytest.mark.asyncio
    async def test_exit_closes_served_databases(self):
        transport = create_demo_transport()
        app = InspectorApp(transport)

        async with app.run_test(size=(120, 40)) as pilot:
            await _idle(app, pilot)

        with pytest.raises(sqlite3.ProgrammingError):
            transport.databases[1].connection.execute("SELECT 1")
