from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from ..core.config import DATABASE_URL, JSON_STORAGE_PATH, STORAGE_BACKEND
from .base import UserStore, WatchlistStore
from .json_file import JsonDocument, JsonUserStore, JsonWatchlistStore


@dataclass
class Storage:
    users: UserStore
    watchlist: WatchlistStore
    backend: str
    _close: Optional[Callable[[], None]] = field(default=None, repr=False)

    def close(self) -> None:
        if self._close is not None:
            self._close()


def open_json_storage(path: Optional[str] = None) -> Storage:
    document = JsonDocument(path)
    return Storage(JsonUserStore(document), JsonWatchlistStore(document), backend="json")


def open_sql_storage(database_url: str) -> Storage:
    from ..db import create_db_engine
    from .sql import open_sql_stores

    engine = create_db_engine(database_url)
    users, watchlist = open_sql_stores(engine)
    return Storage(users, watchlist, backend="sql", _close=engine.dispose)


def open_storage(
    backend: Optional[str] = None,
    *,
    database_url: Optional[str] = None,
    json_path: Optional[str] = None,
) -> Storage:
    selected = (backend or STORAGE_BACKEND).strip().lower()
    if selected == "json":
        return open_json_storage(json_path or JSON_STORAGE_PATH)
    if selected == "sql":
        return open_sql_storage(database_url or DATABASE_URL)
    raise ValueError(f"Unsupported storage backend: {selected}")


__all__ = [
    "Storage",
    "UserStore",
    "WatchlistStore",
    "open_json_storage",
    "open_sql_storage",
    "open_storage",
]
