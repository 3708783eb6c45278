"""Demo transport serving the inspection protocol from in-memory SQLite.

Usage:
    dbscope --mock                  # Two demo databases
    dbscope --mock --demo-rows=500  # Larger users table for paging
    dbscope --mock --mock-delay=0.5 # Slow responses

The transport answers the same five requests a real inspected process
does, so the whole client can be exercised without a device.
"""

from __future__ import annotations

import asyncio
import sqlite3
from dataclasses import dataclass, field
from typing import Any

from dbscope.domains.inspect.domain.values import Value

# Statement keywords whose result is a row set
SELECT_KEYWORDS = frozenset(["SELECT", "WITH", "PRAGMA", "EXPLAIN", "VALUES"])

STRUCTURE_COLUMNS = ["column_name", "data_type", "nullable", "default_value", "primary_key", "foreign_key"]
INDEX_COLUMNS = ["index_name", "unique", "indexed_column_name"]


class MockRemoteError(Exception):
    """Error reported by the demo process."""


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _cell(value: Any) -> dict[str, Any]:
    return Value.from_python(value).to_wire()


def _statement_kind(sql: str) -> str:
    words = sql.strip().split()
    keyword = words[0].upper() if words else ""
    if keyword in SELECT_KEYWORDS:
        return "select"
    if keyword in ("INSERT", "REPLACE"):
        return "insert"
    return "update_delete"


@dataclass
class MockDatabase:
    id: int
    name: str
    connection: sqlite3.Connection

    def tables(self) -> list[str]:
        cursor = self.connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row[0] for row in cursor.fetchall()]


@dataclass
class MockTransport:
    """In-process stand-in for an inspected application.

    Attributes:
        databases: Databases served, by id.
        delay: Seconds to wait before answering each request.
        calls: Every (method, params) received, in order.
    """

    databases: dict[int, MockDatabase] = field(default_factory=dict)
    delay: float = 0.0
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def add_database(self, name: str, script: str = "") -> MockDatabase:
        connection = sqlite3.connect(":memory:")
        if script:
            connection.executescript(script)
        database = MockDatabase(id=len(self.databases) + 1, name=name, connection=connection)
        self.databases[database.id] = database
        return database

    def close(self) -> None:
        """Close the connection of every served database."""
        for database in self.databases.values():
            database.connection.close()

    async def send(self, method: str, params: dict[str, Any]) -> Any:
        self.calls.append((method, dict(params)))
        if self.delay:
            await asyncio.sleep(self.delay)
        handler = getattr(self, f"_handle_{method}", None)
        if handler is None:
            raise MockRemoteError(f"Unknown method: {method}")
        try:
            return handler(params)
        except sqlite3.Error as error:
            raise MockRemoteError(str(error)) from error

    def _database(self, params: dict[str, Any]) -> MockDatabase:
        database = self.databases.get(int(params.get("databaseId") or 0))
        if database is None:
            raise MockRemoteError(f"No database with id {params.get('databaseId')}")
        return database

    def _handle_databaseList(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return [{"id": db.id, "name": db.name, "tables": db.tables()} for db in self.databases.values()]

    def _handle_getTableData(self, params: dict[str, Any]) -> dict[str, Any]:
        database = self._database(params)
        table = _quote(str(params["table"]))
        start = int(params.get("start", 0))
        count = int(params.get("count", 50))
        order = params.get("order")
        sql = f"SELECT * FROM {table}"
        if order:
            sql += f" ORDER BY {_quote(str(order))} {'DESC' if params.get('reverse') else 'ASC'}"
        sql += " LIMIT ? OFFSET ?"
        cursor = database.connection.execute(sql, (count, start))
        columns = [description[0] for description in cursor.description]
        rows = cursor.fetchall()
        total = database.connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        return {
            "columns": columns,
            "values": [[_cell(value) for value in row] for row in rows],
            "start": start,
            "count": len(rows),
            "total": total,
        }

    def _handle_getTableStructure(self, params: dict[str, Any]) -> dict[str, Any]:
        database = self._database(params)
        table = str(params["table"])
        conn = database.connection
        foreign = {
            row[3]: f"{row[2]}({row[4]})" for row in conn.execute(f"PRAGMA foreign_key_list({_quote(table)})")
        }
        structure = []
        for _cid, name, data_type, notnull, default, pk in conn.execute(f"PRAGMA table_info({_quote(table)})"):
            structure.append(
                [
                    _cell(name),
                    _cell(data_type),
                    _cell(not notnull),
                    _cell(default),
                    _cell(pk > 0),
                    _cell(foreign.get(name)),
                ]
            )
        indexes = []
        for _seq, index_name, unique, *_rest in conn.execute(f"PRAGMA index_list({_quote(table)})"):
            columns = [row[2] for row in conn.execute(f"PRAGMA index_info({_quote(index_name)})")]
            indexes.append([_cell(index_name), _cell(bool(unique)), _cell(",".join(columns))])
        return {
            "structureColumns": STRUCTURE_COLUMNS,
            "structureValues": structure,
            "indexesColumns": INDEX_COLUMNS,
            "indexesValues": indexes,
        }

    def _handle_getTableInfo(self, params: dict[str, Any]) -> dict[str, Any]:
        database = self._database(params)
        row = database.connection.execute(
            "SELECT sql FROM sqlite_master WHERE name = ?", (str(params["table"]),)
        ).fetchone()
        if row is None:
            raise MockRemoteError(f"No such table: {params['table']}")
        return {"definition": row[0] or ""}

    def _handle_execute(self, params: dict[str, Any]) -> dict[str, Any]:
        database = self._database(params)
        sql = str(params.get("value", ""))
        kind = _statement_kind(sql)
        cursor = database.connection.execute(sql)
        if kind == "select":
            columns = [description[0] for description in cursor.description or []]
            return {
                "type": "select",
                "columns": columns,
                "values": [[_cell(value) for value in row] for row in cursor.fetchall()],
            }
        database.connection.commit()
        if kind == "insert":
            return {"type": "insert", "insertedId": cursor.lastrowid}
        return {"type": "update_delete", "affectedCount": max(cursor.rowcount, 0)}


def create_demo_transport(demo_rows: int = 120, delay: float = 0.0) -> MockTransport:
    """Transport with an ``app.db`` (users, orders) and a ``cache.db`` database."""
    transport = MockTransport(delay=delay)
    app_db = transport.add_database(
        "app.db",
        """
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT,
            score REAL,
            active BOOLEAN NOT NULL DEFAULT 1
        );
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            total REAL NOT NULL
        );
        CREATE INDEX idx_orders_user ON orders(user_id);
        """,
    )
    app_db.connection.executemany(
        "INSERT INTO users (id, name, email, score, active) VALUES (?, ?, ?, ?, ?)",
        [
            (i, f"User {i}", f"user{i}@example.com" if i % 7 else None, round((i * 17.5) % 100, 2), i % 3 != 0)
            for i in range(1, demo_rows + 1)
        ],
    )
    app_db.connection.executemany(
        "INSERT INTO orders (user_id, total) VALUES (?, ?)",
        [((i % max(demo_rows, 1)) + 1, round(i * 3.25, 2)) for i in range(30)],
    )
    app_db.connection.commit()
    transport.add_database(
        "cache.db",
        """
        CREATE TABLE entries (key TEXT PRIMARY KEY, payload BLOB, expires INTEGER);
        INSERT INTO entries VALUES ('session', X'DEADBEEF', 1700000000);
        """,
    )
    return transport


def create_file_transport(paths: list[str]) -> MockTransport:
    """Transport serving local SQLite files, one database per path."""
    transport = MockTransport()
    for path in paths:
        connection = sqlite3.connect(path)
        database = MockDatabase(id=len(transport.databases) + 1, name=path, connection=connection)
        transport.databases[database.id] = database
    return transport
