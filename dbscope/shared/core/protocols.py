"""Protocols for dependency injection in dbscope services.

These describe the collaborators the inspection core talks to without
owning: the transport carrying requests to the inspected process, the
favourites persistence, and the scheduler that runs remote round trips.
"""

from __future__ import annotations

from collections.abc import Coroutine
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TransportProtocol(Protocol):
    """Request/response channel to the inspected process."""

    async def send(self, method: str, params: dict[str, Any]) -> Any:
        """Send a single request and return the decoded response.

        Args:
            method: Remote method name (e.g. ``getTableData``).
            params: JSON-compatible request payload.

        Returns:
            The decoded response payload.

        Raises:
            Any exception when the call fails; the client wraps it.
        """
        ...


@runtime_checkable
class FavoritesStoreProtocol(Protocol):
    """Persistence for the ordered list of favourite queries."""

    def load(self) -> list[str]:
        """Load the stored favourites, or an empty list."""
        ...

    def save(self, favorites: list[str]) -> None:
        """Replace the stored favourites."""
        ...


class TaskRunner(Protocol):
    """Schedules a coroutine without waiting for it (fire-and-forget)."""

    def __call__(self, work: Coroutine[Any, Any, None], name: str) -> Any: ...
