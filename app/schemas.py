from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

UserStatus = Literal["pending", "approved", "rejected", "banned"]
Language = Literal["ru", "en"]
Theme = Literal["dark", "light"]

USER_STATUSES = ("pending", "approved", "rejected", "banned")


class TelegramIdentity(BaseModel):
    """The `user` object embedded in WebApp init data, plus its auth_date."""

    model_config = ConfigDict(extra="ignore")

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    is_premium: bool = False
    photo_url: Optional[str] = None
    auth_date: Optional[int] = None


class ExternalAccount(BaseModel):
    external_id: int = Field(gt=0)
    external_username: str = Field(min_length=1, max_length=64)
    external_display_name: Optional[str] = Field(default=None, max_length=128)
    external_avatar_url: Optional[str] = Field(default=None, max_length=500)


class UserOut(BaseModel):
    id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    language: Language
    theme: Theme
    status: UserStatus
    external_id: Optional[int] = None
    external_username: Optional[str] = None
    external_display_name: Optional[str] = None
    external_avatar_url: Optional[str] = None
    status_changed_at: Optional[datetime] = None
    status_changed_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    language: Optional[Language] = None
    theme: Optional[Theme] = None

    def changes(self) -> dict:
        # Only fields the caller actually sent; an explicit null means "leave as is".
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class GameMetrics(BaseModel):
    visits: int = 0
    playing: int = 0
    favorites: int = 0
    up_votes: int = 0
    down_votes: int = 0


class GameMetadata(GameMetrics):
    name: Optional[str] = Field(default=None, max_length=200)
    thumbnail_url: Optional[str] = Field(default=None, max_length=500)


class WatchlistEntryOut(BaseModel):
    user_id: int
    external_game_id: int
    name: Optional[str] = None
    thumbnail_url: Optional[str] = None
    visits: int = 0
    playing: int = 0
    favorites: int = 0
    up_votes: int = 0
    down_votes: int = 0
    added_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WatchlistAddIn(BaseModel):
    universe_id: Optional[int] = Field(default=None, gt=0)
    query: Optional[str] = Field(default=None, max_length=300)
    name: Optional[str] = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def require_target(self):
        if self.universe_id is None and not (self.query or "").strip():
            raise ValueError("universe_id or query is required")
        return self


class UserOverviewOut(BaseModel):
    user: UserOut
    games: List[WatchlistEntryOut]
    is_admin: bool = False


class WatchlistRefreshOut(BaseModel):
    refreshed: int
    failed: List[int]
    games: List[WatchlistEntryOut]


class AdminStatsOut(BaseModel):
    total_users: int
    approved_users: int
    pending_users: int
    rejected_users: int
    banned_users: int
    total_games: int
