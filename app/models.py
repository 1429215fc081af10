from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .core.config import DEFAULT_LANGUAGE, DEFAULT_THEME
from .db import Base


class User(Base):
    __tablename__ = "users"

    # Telegram user id, never generated locally.
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    username = Column(String(64), nullable=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    language = Column(String(8), nullable=False, default=DEFAULT_LANGUAGE)
    theme = Column(String(8), nullable=False, default=DEFAULT_THEME)
    status = Column(String(16), nullable=False, default="pending", index=True)
    external_id = Column(BigInteger, nullable=True)
    external_username = Column(String(64), nullable=True)
    external_display_name = Column(String(128), nullable=True)
    external_avatar_url = Column(String(500), nullable=True)
    status_changed_at = Column(DateTime, nullable=True)
    status_changed_by = Column(BigInteger, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    watchlist = relationship(
        "WatchlistEntry",
        back_populates="user",
        cascade="all, delete",
        passive_deletes=True,
    )


class WatchlistEntry(Base):
    __tablename__ = "watchlist_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "external_game_id", name="uq_watchlist_user_game"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_game_id = Column(BigInteger, nullable=False)
    name = Column(String(200), nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    visits = Column(BigInteger, default=0)
    playing = Column(Integer, default=0)
    favorites = Column(BigInteger, default=0)
    up_votes = Column(Integer, default=0)
    down_votes = Column(Integer, default=0)
    added_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="watchlist")
