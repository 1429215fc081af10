from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from ..core.errors import Conflict, NotFound
from ..schemas import GameMetadata, GameMetrics, UserOut, WatchlistEntryOut
from .base import UserStore, WatchlistStore

logger = logging.getLogger(__name__)

_METRIC_FIELDS = ("visits", "playing", "favorites", "up_votes", "down_votes")


def _empty_document() -> dict:
    return {"users": {}, "watchlist": []}


class JsonDocument:
    """One flat JSON file holding every user and watch-list entry.

    All reads and writes go through ``transaction()``, which holds a process-wide
    lock. With ``path=None`` the document lives in memory only, which is what the
    tests use.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._lock = threading.RLock()
        self._data = self._load()

    def _load(self) -> dict:
        if self.path is None or not self.path.exists():
            return _empty_document()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.exception("Could not read %s; refusing to start with an empty store", self.path)
            raise
        if not isinstance(payload, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        data = _empty_document()
        data["users"].update(payload.get("users") or {})
        data["watchlist"].extend(payload.get("watchlist") or [])
        return data

    def _save(self, data: dict) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @contextmanager
    def transaction(self, write: bool = False) -> Iterator[dict]:
        with self._lock:
            if not write:
                yield self._data
                return
            # Writers edit a copy that replaces the live document only once it is on disk.
            draft = copy.deepcopy(self._data)
            yield draft
            self._save(draft)
            self._data = draft


class JsonUserStore(UserStore):
    def __init__(self, document: JsonDocument):
        self._document = document

    def get(self, user_id: int) -> Optional[UserOut]:
        with self._document.transaction() as data:
            raw = data["users"].get(str(user_id))
            return UserOut.model_validate(raw) if raw else None

    def insert_if_absent(self, record: UserOut) -> bool:
        key = str(record.id)
        with self._document.transaction() as data:
            if key in data["users"]:
                return False
        with self._document.transaction(write=True) as data:
            if key in data["users"]:
                return False
            data["users"][key] = record.model_dump(mode="json")
        logger.info("Created user %s", record.id)
        return True

    def update(self, user_id: int, fields: dict) -> UserOut:
        with self._document.transaction(write=True) as data:
            raw = data["users"].get(str(user_id))
            if raw is None:
                raise NotFound("User not found")
            updated = UserOut.model_validate({**raw, **fields})
            data["users"][str(user_id)] = updated.model_dump(mode="json")
            return updated

    def list(self, status: Optional[str] = None, limit: Optional[int] = None) -> list[UserOut]:
        with self._document.transaction() as data:
            users = [UserOut.model_validate(raw) for raw in data["users"].values()]
        if status:
            users = [user for user in users if user.status == status]
        users.sort(key=lambda user: (user.created_at or datetime.min, user.id))
        return users[:limit] if limit else users

    def count_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        with self._document.transaction() as data:
            for raw in data["users"].values():
                status = str(raw.get("status") or "pending")
                counts[status] = counts.get(status, 0) + 1
        return counts


class JsonWatchlistStore(WatchlistStore):
    def __init__(self, document: JsonDocument):
        self._document = document

    @staticmethod
    def _index(data: dict, user_id: int, external_game_id: int) -> Optional[int]:
        for index, raw in enumerate(data["watchlist"]):
            if raw.get("user_id") == user_id and raw.get("external_game_id") == external_game_id:
                return index
        return None

    def add(self, user_id: int, external_game_id: int, metadata: GameMetadata) -> WatchlistEntryOut:
        with self._document.transaction(write=True) as data:
            if str(user_id) not in data["users"]:
                raise NotFound("User not found")
            if self._index(data, user_id, external_game_id) is not None:
                raise Conflict("Game already added")
            entry = WatchlistEntryOut(
                user_id=user_id,
                external_game_id=external_game_id,
                added_at=datetime.utcnow(),
                **metadata.model_dump(),
            )
            data["watchlist"].append(entry.model_dump(mode="json"))
            return entry

    def remove(self, user_id: int, external_game_id: int) -> bool:
        with self._document.transaction() as data:
            if self._index(data, user_id, external_game_id) is None:
                return False
        with self._document.transaction(write=True) as data:
            index = self._index(data, user_id, external_game_id)
            if index is None:
                return False
            del data["watchlist"][index]
            return True

    def get(self, user_id: int, external_game_id: int) -> Optional[WatchlistEntryOut]:
        with self._document.transaction() as data:
            index = self._index(data, user_id, external_game_id)
            if index is None:
                return None
            return WatchlistEntryOut.model_validate(data["watchlist"][index])

    def list(self, user_id: int) -> list[WatchlistEntryOut]:
        with self._document.transaction() as data:
            return [
                WatchlistEntryOut.model_validate(raw)
                for raw in data["watchlist"]
                if raw.get("user_id") == user_id
            ]

    def refresh_metrics(
        self, user_id: int, external_game_id: int, metrics: GameMetrics
    ) -> WatchlistEntryOut:
        with self._document.transaction(write=True) as data:
            index = self._index(data, user_id, external_game_id)
            if index is None:
                raise NotFound("Game not found")
            raw = dict(data["watchlist"][index])
            values = metrics.model_dump()
            for field in _METRIC_FIELDS:
                raw[field] = values[field]
            data["watchlist"][index] = raw
            return WatchlistEntryOut.model_validate(raw)

    def count(self) -> int:
        with self._document.transaction() as data:
            return len(data["watchlist"])
