"""Subscription-driven fetching of remote data for the inspector.

On every state change the orchestrator works out which remote resources the
new state is missing and requests each of them once. Responses are merged
back through the state transitions, but only when the selection they were
requested for is still the current one; anything else is dropped.
"""

from __future__ import annotations

from collections.abc import Hashable
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger

from dbscope.domains.inspect.domain.models import PAGE_SIZE, InspectorState, Page, Structure, ViewMode
from dbscope.domains.inspect.state import transitions
from dbscope.shared.core.errors import DbscopeError
from dbscope.shared.core.tasks import BackgroundTasks

if TYPE_CHECKING:
    from dbscope.domains.inspect.protocol.client import ProtocolClient
    from dbscope.domains.inspect.state.store import StateStore
    from dbscope.shared.core.protocols import TaskRunner


class ResourceKind(Enum):
    PAGE = "page"
    STRUCTURE = "structure"
    TABLE_INFO = "table_info"
    DATABASE_LIST = "database_list"


def page_key(state: InspectorState) -> tuple[Any, ...]:
    return (state.selected_database, state.selected_table, state.page_row_number, state.current_sort)


def table_key(state: InspectorState) -> tuple[Any, ...]:
    return (state.selected_database, state.selected_table)


_DATABASE_LIST_KEY: tuple[Any, ...] = ()


class FetchOrchestrator:
    """Issues the fetches a state transition makes due.

    Args:
        store: The state store to watch and merge into.
        client: Protocol client used for the remote calls.
        runner: Scheduler for the remote round trips. Defaults to asyncio tasks.
    """

    def __init__(
        self,
        store: StateStore,
        client: ProtocolClient,
        runner: TaskRunner | None = None,
    ):
        self._store = store
        self._client = client
        self._runner = runner or BackgroundTasks()
        self._in_flight: dict[ResourceKind, Hashable] = {}
        self._unsubscribe = store.subscribe(self._on_state_change)

    @property
    def runner(self) -> TaskRunner:
        return self._runner

    def in_flight(self, kind: ResourceKind) -> Hashable | None:
        """Key of the outstanding request of this kind, if any."""
        return self._in_flight.get(kind)

    def close(self) -> None:
        self._unsubscribe()

    def _on_state_change(self, state: InspectorState, previous: InspectorState) -> None:
        if state.has_table_selection:
            if state.view_mode is ViewMode.DATA and state.current_page is None:
                self._issue(ResourceKind.PAGE, page_key(state), self._fetch_page)
            if state.current_structure is None:
                self._issue(ResourceKind.STRUCTURE, table_key(state), self._fetch_structure)
            # Table info is refetched together with the structure, not on its own.
            if state.view_mode is ViewMode.TABLE_INFO and state.current_structure is None:
                self._issue(ResourceKind.TABLE_INFO, table_key(state), self._fetch_table_info)

        if state.outdated_database_list and not previous.outdated_database_list:
            self.request_database_list()

    def request_database_list(self) -> bool:
        """Request the database list unless a request is already outstanding."""
        return self._issue(ResourceKind.DATABASE_LIST, _DATABASE_LIST_KEY, self._fetch_database_list)

    def _issue(self, kind: ResourceKind, key: tuple[Any, ...], fetch: Any) -> bool:
        if kind in self._in_flight and self._in_flight[kind] == key:
            return False
        self._in_flight[kind] = key
        logger.debug("Fetching {} for {}", kind.value, key)
        self._runner(fetch(key), f"fetch-{kind.value}")
        return True

    def _release(self, kind: ResourceKind, key: tuple[Any, ...]) -> None:
        if self._in_flight.get(kind) == key:
            del self._in_flight[kind]

    def _is_current(self, kind: ResourceKind, key: tuple[Any, ...]) -> bool:
        state = self._store.get()
        current = page_key(state) if kind is ResourceKind.PAGE else table_key(state)
        if current != key:
            logger.debug("Discarding stale {} response for {} (now {})", kind.value, key, current)
            return False
        return True

    def _fail(self, kind: ResourceKind, key: tuple[Any, ...], error: DbscopeError) -> None:
        # The in-flight marker is still held here, so the error transition
        # cannot re-issue the request that just failed.
        logger.debug("{} fetch for {} failed: {}", kind.value, key, error)
        if kind is ResourceKind.DATABASE_LIST:
            self._store.update(lambda s: transitions.mark_database_list_failed(s, str(error)))
        elif self._is_current(kind, key):
            self._store.update(lambda s: transitions.set_error(s, str(error)))

    async def _fetch_page(self, key: tuple[Any, ...]) -> None:
        database_id, table, start, sort = key
        kind = ResourceKind.PAGE
        try:
            data = await self._client.get_table_data(
                database_id,
                table,
                start=start,
                count=PAGE_SIZE,
                order=sort.key if sort is not None else None,
                reverse=sort.reverse if sort is not None else False,
            )
        except DbscopeError as error:
            self._fail(kind, key, error)
            self._release(kind, key)
            return
        try:
            if self._is_current(kind, key):
                page = Page(
                    database_id=database_id,
                    table=table,
                    columns=data.columns,
                    rows=data.values,
                    start=data.start,
                    count=data.count,
                    total=data.total,
                )
                self._store.update(lambda s: transitions.update_page(s, page))
        finally:
            self._release(kind, key)

    async def _fetch_structure(self, key: tuple[Any, ...]) -> None:
        database_id, table = key
        kind = ResourceKind.STRUCTURE
        try:
            data = await self._client.get_table_structure(database_id, table)
        except DbscopeError as error:
            self._fail(kind, key, error)
            self._release(kind, key)
            return
        try:
            if self._is_current(kind, key):
                structure = Structure(
                    database_id=database_id,
                    table=table,
                    columns=data.structure_columns,
                    rows=data.structure_values,
                    indexes_columns=data.indexes_columns,
                    indexes_values=data.indexes_values,
                )
                self._store.update(lambda s: transitions.update_structure(s, structure))
        finally:
            self._release(kind, key)

    async def _fetch_table_info(self, key: tuple[Any, ...]) -> None:
        database_id, table = key
        kind = ResourceKind.TABLE_INFO
        try:
            data = await self._client.get_table_info(database_id, table)
        except DbscopeError as error:
            self._fail(kind, key, error)
            self._release(kind, key)
            return
        try:
            if self._is_current(kind, key):
                self._store.update(lambda s: transitions.update_table_info(s, data.definition))
        finally:
            self._release(kind, key)

    async def _fetch_database_list(self, key: tuple[Any, ...]) -> None:
        kind = ResourceKind.DATABASE_LIST
        try:
            databases = await self._client.database_list()
        except DbscopeError as error:
            self._fail(kind, key, error)
            self._release(kind, key)
            return
        try:
            self._store.update(lambda s: transitions.update_databases(s, databases))
        finally:
            self._release(kind, key)
