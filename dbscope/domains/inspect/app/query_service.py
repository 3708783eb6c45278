"""Free-form SQL execution against the selected database."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

from dbscope.domains.inspect.domain.models import QueryResult
from dbscope.domains.inspect.protocol.client import InsertResponse, SelectResponse, UpdateDeleteResponse
from dbscope.domains.inspect.state import transitions
from dbscope.shared.core.errors import DbscopeError
from dbscope.shared.core.tasks import BackgroundTasks
from dbscope.shared.core.utils import format_query_time

if TYPE_CHECKING:
    from dbscope.domains.inspect.protocol.client import ExecuteResponse, ProtocolClient
    from dbscope.domains.inspect.state.store import StateStore
    from dbscope.shared.core.protocols import TaskRunner


def to_query_result(response: ExecuteResponse) -> QueryResult:
    """Map the remote execution outcome onto the single populated result field."""
    if isinstance(response, SelectResponse):
        return QueryResult.for_table(response.columns, response.values)
    if isinstance(response, InsertResponse):
        return QueryResult.for_insert(response.inserted_id)
    if isinstance(response, UpdateDeleteResponse):
        return QueryResult.for_update_delete(response.affected_count)
    raise TypeError(f"Unsupported execution response: {response!r}")


class QueryService:
    """Sends SQL to the inspected process and records the outcome in the store.

    Args:
        store: The state store to merge results into.
        client: Protocol client used for the ``execute`` call.
        runner: Scheduler for the remote round trip.
        clock: Returns the display timestamp for history entries.
        timer: Monotonic timer in seconds.
    """

    def __init__(
        self,
        store: StateStore,
        client: ProtocolClient,
        runner: TaskRunner | None = None,
        clock: Callable[[], str] = format_query_time,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self._store = store
        self._client = client
        self._runner = runner or BackgroundTasks()
        self._clock = clock
        self._timer = timer

    def execute(self, query: str, record_history: bool = True) -> None:
        """Submit ``query`` without waiting for the result.

        The query buffer is appended to the history on submission, whether or
        not the remote execution later succeeds.
        """
        database_id = self._store.get().selected_database
        if database_id is None:
            self._store.update(lambda s: transitions.set_error(s, "No database selected"))
        else:
            self._runner(self._run(database_id, query, self._timer()), "execute")
        if record_history:
            self._store.update(lambda s: transitions.record_submission(s, self._clock()))

    async def _run(self, database_id: int, query: str, started: float) -> None:
        try:
            response = await self._client.execute(database_id, query)
        except DbscopeError as error:
            logger.debug("Query failed: {}", error)
            self._store.update(lambda s: transitions.set_error(s, str(error)))
            return
        elapsed_ms = (self._timer() - started) * 1000
        result = to_query_result(response)
        self._store.update(lambda s: transitions.record_execution(s, result, elapsed_ms))
