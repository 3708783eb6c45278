"""Favourite queries store."""

from __future__ import annotations

from pathlib import Path

from dbscope.shared.core.store import CONFIG_DIR, JSONFileStore

FAVORITES_KEY = "plugin-database-favorites-sql-queries"


class FavoritesStore(JSONFileStore):
    """Store for the user's favourite SQL queries.

    Favourites are stored as an ordered JSON array of query strings in
    ~/.dbscope/plugin-database-favorites-sql-queries.json
    """

    def __init__(self, file_path: Path | None = None) -> None:
        super().__init__(file_path or CONFIG_DIR / f"{FAVORITES_KEY}.json")

    def load(self) -> list[str]:
        data = self._read_json()
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, str)]

    def save(self, favorites: list[str]) -> None:
        self._write_json(list(favorites))


class InMemoryFavoritesStore:
    """Favourites kept in memory only."""

    def __init__(self, favorites: list[str] | None = None) -> None:
        self.favorites = list(favorites or [])
        self.save_count = 0

    def load(self) -> list[str]:
        return list(self.favorites)

    def save(self, favorites: list[str]) -> None:
        self.favorites = list(favorites)
        self.save_count += 1
