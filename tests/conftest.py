"""Pytest fixtures for dbscope tests."""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

_TEST_CONFIG_DIR = Path(tempfile.mkdtemp(prefix="dbscope-test-config-"))
os.environ.setdefault("DBSCOPE_CONFIG_DIR", str(_TEST_CONFIG_DIR))


@dataclass
class PendingCall:
    method: str
    params: dict[str, Any]
    future: asyncio.Future

    def resolve(self, value: Any) -> None:
        self.future.set_result(value)

    def fail(self, error: BaseException) -> None:
        self.future.set_exception(error)


class GatedTransport:
    """Transport whose responses the test releases one by one."""

    def __init__(self) -> None:
        self.received: list[PendingCall] = []

    async def send(self, method: str, params: dict[str, Any]) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.received.append(PendingCall(method, dict(params), future))
        return await future

    def calls(self, method: str) -> list[PendingCall]:
        return [call for call in self.received if call.method == method]

    def pending(self, method: str) -> list[PendingCall]:
        return [call for call in self.calls(method) if not call.future.done()]

    def last(self, method: str) -> PendingCall:
        calls = self.calls(method)
        assert calls, f"no {method} request was sent"
        return calls[-1]


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def wire(value: Any) -> dict[str, Any]:
    """Encode a Python scalar the way the inspected process does."""
    from dbscope.domains.inspect.domain.values import Value

    return Value.from_python(value).to_wire()


def table_data(columns: list[str], rows: list[list[Any]], start: int = 0, total: int | None = None) -> dict:
    return {
        "columns": columns,
        "values": [[wire(cell) for cell in row] for row in rows],
        "start": start,
        "count": len(rows),
        "total": len(rows) if total is None else total,
    }


def table_structure(columns: list[tuple[str, str, bool, bool]]) -> dict:
    """Structure payload from (name, type, nullable, primary_key) tuples."""
    return {
        "structureColumns": ["column_name", "data_type", "nullable", "default_value", "primary_key"],
        "structureValues": [
            [wire(name), wire(data_type), wire(nullable), wire(None), wire(pk)]
            for name, data_type, nullable, pk in columns
        ],
        "indexesColumns": ["index_name", "unique", "indexed_column_name"],
        "indexesValues": [],
    }


@pytest.fixture
def gated_transport() -> GatedTransport:
    return GatedTransport()


@pytest.fixture
def demo_transport():
    from dbscope.mocks import create_demo_transport

    return create_demo_transport(demo_rows=120)


@pytest.fixture
def favorites_store():
    from dbscope.domains.inspect.store.favorites import InMemoryFavoritesStore

    return InMemoryFavoritesStore()


@pytest.fixture
def settled():
    """The ``settle`` coroutine function."""
    return settle


@pytest.fixture
def payloads():
    """Builders for remote response payloads."""
    from types import SimpleNamespace

    return SimpleNamespace(wire=wire, table_data=table_data, table_structure=table_structure)
