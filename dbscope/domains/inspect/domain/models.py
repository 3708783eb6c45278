"""Entities owned by the inspector state store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .values import Value

PAGE_SIZE = 50


class ViewMode(str, Enum):
    """Which panel of the inspector is shown."""

    DATA = "data"
    STRUCTURE = "structure"
    SQL = "SQL"
    TABLE_INFO = "tableInfo"
    QUERY_HISTORY = "queryHistory"


class SortDirection(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class SortOrder:
    """Column sort applied to page requests. Scoped to a single table."""

    key: str
    direction: SortDirection = SortDirection.UP

    @property
    def reverse(self) -> bool:
        return self.direction is SortDirection.DOWN


@dataclass(frozen=True)
class DatabaseEntry:
    id: int
    name: str
    tables: tuple[str, ...] = ()


@dataclass(frozen=True)
class Page:
    """One fetched window of a table. Always replaced whole, never merged."""

    database_id: int
    table: str
    columns: list[str]
    rows: list[list[Value]]
    start: int
    count: int
    total: int
    highlighted_rows: tuple[int, ...] = ()


@dataclass(frozen=True)
class Structure:
    """Column and index metadata for one table.

    ``columns`` names the metadata fields; each entry of ``rows`` describes one
    table column. Row editing relies on the ``primary_key``, ``column_name``,
    ``data_type`` and ``nullable`` metadata fields being present by name.
    """

    database_id: int
    table: str
    columns: list[str]
    rows: list[list[Value]]
    indexes_columns: list[str] = field(default_factory=list)
    indexes_values: list[list[Value]] = field(default_factory=list)


@dataclass(frozen=True)
class Query:
    value: str
    time: str


@dataclass(frozen=True)
class QueriedTable:
    columns: list[str]
    rows: list[list[Value]]
    highlighted_rows: tuple[int, ...] = ()


@dataclass(frozen=True)
class QueryResult:
    """Outcome of an executed statement. Exactly one field is populated."""

    table: QueriedTable | None = None
    inserted_id: int | None = None
    affected_count: int | None = None

    @classmethod
    def for_table(cls, columns: list[str], rows: list[list[Value]]) -> QueryResult:
        return cls(table=QueriedTable(columns=columns, rows=rows))

    @classmethod
    def for_insert(cls, inserted_id: int) -> QueryResult:
        return cls(inserted_id=inserted_id)

    @classmethod
    def for_update_delete(cls, affected_count: int) -> QueryResult:
        return cls(affected_count=affected_count)


@dataclass(frozen=True)
class InspectorState:
    """The complete view state of an inspection session."""

    selected_database: int | None = None
    selected_table: str | None = None
    page_row_number: int = 0
    databases: tuple[DatabaseEntry, ...] = ()
    outdated_database_list: bool = True
    view_mode: ViewMode = ViewMode.DATA
    error: str | None = None
    current_page: Page | None = None
    current_structure: Structure | None = None
    current_sort: SortOrder | None = None
    query: Query | None = None
    query_result: QueryResult | None = None
    favorites: tuple[str, ...] = ()
    execution_time: float = 0
    table_info: str = ""
    query_history: tuple[Query, ...] = ()

    def database_by_id(self, database_id: int | None) -> DatabaseEntry | None:
        for database in self.databases:
            if database.id == database_id:
                return database
        return None

    def tables_for(self, database_id: int | None) -> tuple[str, ...]:
        database = self.database_by_id(database_id)
        return database.tables if database is not None else ()

    @property
    def has_table_selection(self) -> bool:
        return self.selected_database is not None and bool(self.selected_table)
