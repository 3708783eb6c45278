"""Typed client for the remote database inspection protocol.

The inspected process answers five single-shot requests. ``ProtocolClient``
builds their payloads, hands them to a transport and turns the answers into
typed responses. Any failure, whether raised by the transport or caused by
a malformed answer, surfaces as ``RemoteCallError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from dbscope.domains.inspect.domain.models import DatabaseEntry
from dbscope.domains.inspect.domain.values import Value, rows_from_wire
from dbscope.shared.core.errors import ProtocolError, RemoteCallError
from dbscope.shared.core.protocols import TransportProtocol

DATABASE_LIST = "databaseList"
GET_TABLE_DATA = "getTableData"
GET_TABLE_STRUCTURE = "getTableStructure"
GET_TABLE_INFO = "getTableInfo"
EXECUTE = "execute"


@dataclass(frozen=True)
class TableDataResponse:
    columns: list[str]
    values: list[list[Value]]
    start: int
    count: int
    total: int


@dataclass(frozen=True)
class TableStructureResponse:
    structure_columns: list[str]
    structure_values: list[list[Value]]
    indexes_columns: list[str]
    indexes_values: list[list[Value]]


@dataclass(frozen=True)
class TableInfoResponse:
    definition: str


@dataclass(frozen=True)
class SelectResponse:
    columns: list[str]
    values: list[list[Value]]


@dataclass(frozen=True)
class InsertResponse:
    inserted_id: int


@dataclass(frozen=True)
class UpdateDeleteResponse:
    affected_count: int


ExecuteResponse = SelectResponse | InsertResponse | UpdateDeleteResponse


def error_message(error: Any) -> str:
    """Best displayable text for an error-like object."""
    if isinstance(error, RemoteCallError):
        return error.message
    if isinstance(error, Mapping):
        return str(error.get("message") or error)
    if isinstance(error, BaseException):
        if len(error.args) == 1 and isinstance(error.args[0], Mapping):
            return error_message(error.args[0])
        return str(error) or type(error).__name__
    return str(error)


class ProtocolClient:
    """Request/response wrapper around a transport.

    Args:
        transport: Channel to the inspected process.
    """

    def __init__(self, transport: TransportProtocol):
        self._transport = transport

    @property
    def transport(self) -> TransportProtocol:
        return self._transport

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        logger.debug("remote call {} {}", method, params)
        try:
            return await self._transport.send(method, params)
        except RemoteCallError:
            raise
        except Exception as error:
            raise RemoteCallError(method, error_message(error)) from error

    async def database_list(self) -> list[DatabaseEntry]:
        data = await self._call(DATABASE_LIST, {})
        if isinstance(data, Mapping):
            data = data.get("databases")
        if not isinstance(data, list):
            raise ProtocolError(DATABASE_LIST, "Expected a list of databases")
        try:
            return [
                DatabaseEntry(
                    id=int(entry["id"]),
                    name=str(entry["name"]),
                    tables=tuple(str(t) for t in entry.get("tables") or ()),
                )
                for entry in data
            ]
        except (KeyError, TypeError, ValueError) as error:
            raise ProtocolError(DATABASE_LIST, f"Malformed database entry: {error}") from error

    async def get_table_data(
        self,
        database_id: int,
        table: str,
        start: int,
        count: int,
        order: str | None = None,
        reverse: bool = False,
    ) -> TableDataResponse:
        params: dict[str, Any] = {
            "databaseId": database_id,
            "table": table,
            "start": start,
            "count": count,
            "reverse": reverse,
        }
        if order is not None:
            params["order"] = order
        data = _expect_mapping(GET_TABLE_DATA, await self._call(GET_TABLE_DATA, params))
        try:
            return TableDataResponse(
                columns=[str(c) for c in data["columns"]],
                values=rows_from_wire(data["values"]),
                start=int(data["start"]),
                count=int(data["count"]),
                total=int(data["total"]),
            )
        except (KeyError, TypeError, ValueError) as error:
            raise ProtocolError(GET_TABLE_DATA, f"Malformed table data: {error}") from error

    async def get_table_structure(self, database_id: int, table: str) -> TableStructureResponse:
        params = {"databaseId": database_id, "table": table}
        data = _expect_mapping(GET_TABLE_STRUCTURE, await self._call(GET_TABLE_STRUCTURE, params))
        try:
            return TableStructureResponse(
                structure_columns=[str(c) for c in data["structureColumns"]],
                structure_values=rows_from_wire(data["structureValues"]),
                indexes_columns=[str(c) for c in data.get("indexesColumns") or []],
                indexes_values=rows_from_wire(data.get("indexesValues")),
            )
        except (KeyError, TypeError, ValueError) as error:
            raise ProtocolError(GET_TABLE_STRUCTURE, f"Malformed table structure: {error}") from error

    async def get_table_info(self, database_id: int, table: str) -> TableInfoResponse:
        params = {"databaseId": database_id, "table": table}
        data = _expect_mapping(GET_TABLE_INFO, await self._call(GET_TABLE_INFO, params))
        definition = data.get("definition")
        if not isinstance(definition, str):
            raise ProtocolError(GET_TABLE_INFO, "Missing table definition")
        return TableInfoResponse(definition=definition)

    async def execute(self, database_id: int, value: str) -> ExecuteResponse:
        params = {"databaseId": database_id, "value": value}
        data = _expect_mapping(EXECUTE, await self._call(EXECUTE, params))
        kind = data.get("type")
        try:
            if kind == "select":
                return SelectResponse(
                    columns=[str(c) for c in data["columns"]],
                    values=rows_from_wire(data["values"]),
                )
            if kind == "insert":
                return InsertResponse(inserted_id=int(data["insertedId"]))
            if kind == "update_delete":
                return UpdateDeleteResponse(affected_count=int(data["affectedCount"]))
        except (KeyError, TypeError, ValueError) as error:
            raise ProtocolError(EXECUTE, f"Malformed {kind} result: {error}") from error
        raise ProtocolError(EXECUTE, f"Unknown execution result type: {kind!r}")


def _expect_mapping(method: str, data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ProtocolError(method, f"Expected an object, got {type(data).__name__}")
    return data
