from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..schemas import GameMetadata, GameMetrics, UserOut, WatchlistEntryOut


class UserStore(ABC):
    """Telegram id -> user record. Implementations must make insert_if_absent atomic."""

    @abstractmethod
    def get(self, user_id: int) -> Optional[UserOut]: ...

    @abstractmethod
    def insert_if_absent(self, record: UserOut) -> bool:
        """Insert the record unless the id exists. Returns True when it was inserted."""

    @abstractmethod
    def update(self, user_id: int, fields: dict) -> UserOut:
        """Write the given fields. Raises NotFound for an unknown id."""

    @abstractmethod
    def list(self, status: Optional[str] = None, limit: Optional[int] = None) -> list[UserOut]: ...

    @abstractmethod
    def count_by_status(self) -> dict[str, int]: ...


class WatchlistStore(ABC):
    """Per-user tracked games, unique on (user_id, external_game_id)."""

    @abstractmethod
    def add(self, user_id: int, external_game_id: int, metadata: GameMetadata) -> WatchlistEntryOut:
        """Insert a new entry. Raises Conflict for a duplicate pair."""

    @abstractmethod
    def remove(self, user_id: int, external_game_id: int) -> bool:
        """Delete the entry if present. Returns whether anything was deleted."""

    @abstractmethod
    def get(self, user_id: int, external_game_id: int) -> Optional[WatchlistEntryOut]: ...

    @abstractmethod
    def list(self, user_id: int) -> list[WatchlistEntryOut]: ...

    @abstractmethod
    def refresh_metrics(
        self, user_id: int, external_game_id: int, metrics: GameMetrics
    ) -> WatchlistEntryOut:
        """Overwrite the cached metric fields only. Raises NotFound when absent."""

    @abstractmethod
    def count(self) -> int: ...
