from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from ..core.config import DEFAULT_LANGUAGE, DEFAULT_THEME, SUPPORTED_LANGUAGES
from ..core.errors import Forbidden, NotFound
from ..schemas import (
    USER_STATUSES,
    AdminStatsOut,
    ExternalAccount,
    SettingsUpdate,
    TelegramIdentity,
    UserOut,
)
from ..stores.base import UserStore, WatchlistStore

logger = logging.getLogger(__name__)

# target status -> statuses it may be reached from without the unban capability
_TRANSITIONS = {
    "approved": {"pending"},
    "rejected": {"pending"},
    "banned": {"pending", "approved", "rejected"},
}
_FORCEABLE = {("rejected", "approved"), ("banned", "approved")}

_EXTERNAL_FIELDS = (
    "external_id",
    "external_username",
    "external_display_name",
    "external_avatar_url",
)


def can_transition(current: str, target: str, force: bool = False) -> bool:
    if current == target:
        return True
    if current in _TRANSITIONS.get(target, set()):
        return True
    return force and (current, target) in _FORCEABLE


class AccountService:
    def __init__(self, users: UserStore, watchlist: WatchlistStore, admin_ids: Iterable[int] = ()):
        self.users = users
        self.watchlist = watchlist
        self.admin_ids = frozenset(int(value) for value in admin_ids)

    def is_admin(self, user_id: int) -> bool:
        return int(user_id) in self.admin_ids

    def get(self, user_id: int) -> UserOut:
        user = self.users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def get_or_create(self, identity: TelegramIdentity) -> UserOut:
        existing = self.users.get(identity.id)
        if existing is not None:
            return existing

        status = "approved" if self.is_admin(identity.id) else "pending"
        record = UserOut(
            id=identity.id,
            username=identity.username,
            first_name=identity.first_name,
            last_name=identity.last_name,
            language=DEFAULT_LANGUAGE,
            theme=DEFAULT_THEME,
            status=status,
            created_at=datetime.utcnow(),
        )
        self.users.insert_if_absent(record)
        # Re-read so concurrent first contacts all return the stored row.
        return self.get(identity.id)

    def update_settings(self, user_id: int, update: SettingsUpdate) -> UserOut:
        changes = update.changes()
        if not changes:
            return self.get(user_id)
        return self.users.update(user_id, changes)

    def language_of(self, user_id: int) -> str:
        user = self.users.get(user_id)
        if user is None or user.language not in SUPPORTED_LANGUAGES:
            return DEFAULT_LANGUAGE
        return user.language

    def require_approved(self, user: UserOut) -> UserOut:
        if user.status != "approved":
            raise Forbidden("Not approved")
        return user

    def link_external_account(self, user_id: int, account: ExternalAccount) -> UserOut:
        self.require_approved(self.get(user_id))
        return self.users.update(user_id, account.model_dump())

    def unlink_external_account(self, user_id: int) -> UserOut:
        return self.users.update(user_id, {field: None for field in _EXTERNAL_FIELDS})

    def set_status(
        self,
        user_id: int,
        new_status: str,
        acting_admin_id: int,
        force: bool = False,
    ) -> UserOut:
        if not self.is_admin(acting_admin_id):
            raise Forbidden("Admin access required")
        if new_status not in USER_STATUSES or new_status == "pending":
            raise Forbidden(f"Cannot set status {new_status!r}")

        user = self.get(user_id)
        if user.status == new_status:
            return user
        if not can_transition(user.status, new_status, force=force):
            raise Forbidden(f"Cannot change status from {user.status} to {new_status}")

        updated = self.users.update(
            user_id,
            {
                "status": new_status,
                "status_changed_at": datetime.utcnow(),
                "status_changed_by": int(acting_admin_id),
            },
        )
        logger.info(
            "User %s status %s -> %s by admin %s", user_id, user.status, new_status, acting_admin_id
        )
        return updated

    def approve(self, user_id: int, acting_admin_id: int) -> UserOut:
        return self.set_status(user_id, "approved", acting_admin_id)

    def reject(self, user_id: int, acting_admin_id: int) -> UserOut:
        return self.set_status(user_id, "rejected", acting_admin_id)

    def ban(self, user_id: int, acting_admin_id: int) -> UserOut:
        return self.set_status(user_id, "banned", acting_admin_id)

    def unban(self, user_id: int, acting_admin_id: int) -> UserOut:
        return self.set_status(user_id, "approved", acting_admin_id, force=True)

    def list_users(self, status: Optional[str] = None, limit: Optional[int] = None) -> list[UserOut]:
        return self.users.list(status=status, limit=limit)

    def stats(self) -> AdminStatsOut:
        counts = self.users.count_by_status()
        return AdminStatsOut(
            total_users=sum(counts.values()),
            approved_users=counts.get("approved", 0),
            pending_users=counts.get("pending", 0),
            rejected_users=counts.get("rejected", 0),
            banned_users=counts.get("banned", 0),
            total_games=self.watchlist.count(),
        )
