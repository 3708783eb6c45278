"""Inspection session: the public API of the database inspector.

``InspectionSession`` owns the state store and wires it to the remote
protocol client, the fetch orchestrator, query execution and favourites
persistence. UI code only calls the methods below and renders
``session.state``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING

from loguru import logger

from dbscope.domains.inspect.app.orchestrator import FetchOrchestrator
from dbscope.domains.inspect.app.query_service import QueryService
from dbscope.domains.inspect.app.update_builder import RowEdit, build_row_edit
from dbscope.domains.inspect.domain.models import InspectorState, SortOrder, ViewMode
from dbscope.domains.inspect.protocol.client import ProtocolClient
from dbscope.domains.inspect.state import transitions
from dbscope.domains.inspect.state.store import StateStore
from dbscope.domains.inspect.store.favorites import InMemoryFavoritesStore
from dbscope.shared.core.tasks import BackgroundTasks
from dbscope.shared.core.utils import format_query_time

if TYPE_CHECKING:
    from dbscope.shared.core.protocols import FavoritesStoreProtocol, TaskRunner, TransportProtocol


class InspectionSession:
    """A client-side view of one inspected process.

    Args:
        transport: Channel to the inspected process.
        favorites_store: Persistence for favourite queries. Defaults to memory.
        runner: Scheduler for remote round trips. Defaults to asyncio tasks.
        clock: Display timestamp source for queries.
    """

    def __init__(
        self,
        transport: TransportProtocol,
        favorites_store: FavoritesStoreProtocol | None = None,
        runner: TaskRunner | None = None,
        clock: Callable[[], str] = format_query_time,
    ):
        self.store = StateStore()
        self.client = ProtocolClient(transport)
        self.runner = runner or BackgroundTasks()
        self.favorites_store = favorites_store or InMemoryFavoritesStore()
        self.orchestrator = FetchOrchestrator(self.store, self.client, self.runner)
        self.queries = QueryService(self.store, self.client, self.runner, clock=clock)
        self._clock = clock

    @property
    def state(self) -> InspectorState:
        return self.store.get()

    def subscribe(self, listener: Callable[[InspectorState, InspectorState], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def connect(self) -> None:
        """Load the database list and the saved favourites."""
        self.orchestrator.request_database_list()
        favorites = self.favorites_store.load()
        self.store.update(lambda s: transitions.load_favorites(s, favorites))

    def close(self) -> None:
        self.orchestrator.close()
        if isinstance(self.runner, BackgroundTasks):
            self.runner.cancel_all()

    async def wait_idle(self) -> None:
        """Wait for outstanding remote calls (default runner only)."""
        if isinstance(self.runner, BackgroundTasks):
            await self.runner.drain()

    def select_database(self, database_id: int) -> None:
        self.store.update(lambda s: transitions.update_selected_database(s, database_id))

    def select_database_by_name(self, name: str) -> None:
        match = next((db for db in self.state.databases if db.name == name), None)
        if match is None:
            logger.warning("Unknown database {!r}", name)
            return
        self.select_database(match.id)

    def select_table(self, table: str) -> None:
        self.store.update(lambda s: transitions.update_selected_table(s, table))

    def set_view_mode(self, view_mode: ViewMode | str) -> None:
        self.store.update(lambda s: transitions.update_view_mode(s, ViewMode(view_mode)))

    def next_page(self) -> None:
        self.store.update(transitions.next_page)

    def previous_page(self) -> None:
        self.store.update(transitions.previous_page)

    def go_to_row(self, row: int) -> None:
        self.store.update(lambda s: transitions.go_to_row(s, row))

    def sort_by(self, order: SortOrder | None) -> None:
        self.store.update(lambda s: transitions.sort_by_changed(s, order))

    def refresh(self) -> None:
        """Dismiss the error and reload the database list and current page."""
        self.store.update(lambda s: transitions.refresh(transitions.clear_error(s)))

    def dismiss_error(self) -> None:
        self.store.update(transitions.clear_error)

    def update_query(self, text: str) -> None:
        self.store.update(lambda s: transitions.update_query(s, text, self._clock()))

    def toggle_favorite(self, favorites: Iterable[str] | None = None) -> None:
        """Star or unstar the current query and persist the favourites."""
        state = self.store.update(lambda s: transitions.toggle_favorite(s, favorites))
        self.favorites_store.save(list(state.favorites))

    def select_favorite(self, text: str) -> None:
        self.store.update(lambda s: transitions.select_favorite(s, text, self._clock()))

    def execute(self, query: str, record_history: bool = True) -> None:
        self.queries.execute(query, record_history=record_history)

    def execute_current_query(self) -> None:
        query = self.state.query
        if query is not None:
            self.execute(query.value)

    def highlight_rows(self, rows: Iterable[int]) -> None:
        """Highlight rows of the table shown in the current view mode."""
        if self.state.view_mode is ViewMode.SQL:
            self.store.update(lambda s: transitions.highlight_query_rows(s, rows))
        else:
            self.store.update(lambda s: transitions.highlight_page_rows(s, rows))

    def edit_row(self, change: Mapping[str, str | None]) -> RowEdit | None:
        """Write an edit of the highlighted row back to the remote table.

        The local page is patched right away; the remote UPDATE completes
        later and a subsequent refetch shows the authoritative row.
        """
        edit = build_row_edit(self.state, change)
        if edit is None:
            return None
        self.execute(edit.statement, record_history=False)
        self.store.update(lambda s: transitions.update_page(s, edit.page))
        return edit
