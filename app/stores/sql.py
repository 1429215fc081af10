from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from ..core.errors import Conflict, NotFound
from ..db import Base, create_session_factory
from ..migrations import ensure_schema
from ..models import User, WatchlistEntry
from ..schemas import GameMetadata, GameMetrics, UserOut, WatchlistEntryOut
from .base import UserStore, WatchlistStore

logger = logging.getLogger(__name__)

_METRIC_FIELDS = ("visits", "playing", "favorites", "up_votes", "down_votes")


def init_schema(engine: Engine) -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except OperationalError as exc:
        # Two processes (api + bot) may create the schema at the same time.
        if "already exists" not in str(exc).lower():
            raise
    ensure_schema(engine)


class SqlUserStore(UserStore):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, user_id: int) -> Optional[UserOut]:
        with self._session_factory() as db:
            user = db.get(User, user_id)
            return UserOut.model_validate(user) if user else None

    def insert_if_absent(self, record: UserOut) -> bool:
        with self._session_factory() as db:
            db.add(User(**record.model_dump()))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                return False
        logger.info("Created user %s", record.id)
        return True

    def update(self, user_id: int, fields: dict) -> UserOut:
        with self._session_factory() as db:
            user = db.get(User, user_id)
            if user is None:
                raise NotFound("User not found")
            for key, value in fields.items():
                setattr(user, key, value)
            db.commit()
            db.refresh(user)
            return UserOut.model_validate(user)

    def list(self, status: Optional[str] = None, limit: Optional[int] = None) -> list[UserOut]:
        with self._session_factory() as db:
            query = db.query(User)
            if status:
                query = query.filter(User.status == status)
            query = query.order_by(User.created_at.asc(), User.id.asc())
            if limit:
                query = query.limit(limit)
            return [UserOut.model_validate(user) for user in query.all()]

    def count_by_status(self) -> dict[str, int]:
        with self._session_factory() as db:
            rows = db.query(User.status, func.count(User.id)).group_by(User.status).all()
            return {str(status): int(count) for status, count in rows}


class SqlWatchlistStore(WatchlistStore):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @staticmethod
    def _find(db, user_id: int, external_game_id: int) -> Optional[WatchlistEntry]:
        return (
            db.query(WatchlistEntry)
            .filter(
                WatchlistEntry.user_id == user_id,
                WatchlistEntry.external_game_id == external_game_id,
            )
            .first()
        )

    def add(self, user_id: int, external_game_id: int, metadata: GameMetadata) -> WatchlistEntryOut:
        with self._session_factory() as db:
            if db.get(User, user_id) is None:
                raise NotFound("User not found")
            entry = WatchlistEntry(
                user_id=user_id,
                external_game_id=external_game_id,
                **metadata.model_dump(),
            )
            db.add(entry)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise Conflict("Game already added")
            db.refresh(entry)
            return WatchlistEntryOut.model_validate(entry)

    def remove(self, user_id: int, external_game_id: int) -> bool:
        with self._session_factory() as db:
            deleted = (
                db.query(WatchlistEntry)
                .filter(
                    WatchlistEntry.user_id == user_id,
                    WatchlistEntry.external_game_id == external_game_id,
                )
                .delete(synchronize_session=False)
            )
            db.commit()
            return bool(deleted)

    def get(self, user_id: int, external_game_id: int) -> Optional[WatchlistEntryOut]:
        with self._session_factory() as db:
            entry = self._find(db, user_id, external_game_id)
            return WatchlistEntryOut.model_validate(entry) if entry else None

    def list(self, user_id: int) -> list[WatchlistEntryOut]:
        with self._session_factory() as db:
            entries = (
                db.query(WatchlistEntry)
                .filter(WatchlistEntry.user_id == user_id)
                .order_by(WatchlistEntry.id.asc())
                .all()
            )
            return [WatchlistEntryOut.model_validate(entry) for entry in entries]

    def refresh_metrics(
        self, user_id: int, external_game_id: int, metrics: GameMetrics
    ) -> WatchlistEntryOut:
        with self._session_factory() as db:
            entry = self._find(db, user_id, external_game_id)
            if entry is None:
                raise NotFound("Game not found")
            values = metrics.model_dump()
            for field in _METRIC_FIELDS:
                setattr(entry, field, values[field])
            db.commit()
            db.refresh(entry)
            return WatchlistEntryOut.model_validate(entry)

    def count(self) -> int:
        with self._session_factory() as db:
            return int(db.query(func.count(WatchlistEntry.id)).scalar() or 0)


def open_sql_stores(engine: Engine) -> tuple[SqlUserStore, SqlWatchlistStore]:
    init_schema(engine)
    session_factory = create_session_factory(engine)
    return SqlUserStore(session_factory), SqlWatchlistStore(session_factory)
