from typing import Optional

from fastapi import Depends, Header, Request

from ..core.errors import Forbidden
from ..schemas import TelegramIdentity, UserOut
from ..services.accounts import AccountService
from ..services.init_data import verify_init_data
from ..services.roblox import RobloxClient
from ..services.watchlist import WatchlistService

INIT_DATA_HEADER = "X-Telegram-Init-Data"


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_watchlist(request: Request) -> WatchlistService:
    return request.app.state.watchlist


def get_roblox(request: Request) -> RobloxClient:
    return request.app.state.roblox


def get_identity(
    request: Request,
    init_data: Optional[str] = Header(default=None, alias=INIT_DATA_HEADER),
) -> TelegramIdentity:
    return verify_init_data(
        init_data,
        request.app.state.bot_token,
        max_age_seconds=request.app.state.init_data_max_age,
    )


def get_current_user(
    identity: TelegramIdentity = Depends(get_identity),
    accounts: AccountService = Depends(get_accounts),
) -> UserOut:
    return accounts.get_or_create(identity)


def get_approved_user(
    current_user: UserOut = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
) -> UserOut:
    return accounts.require_approved(current_user)


def get_admin_user(
    current_user: UserOut = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
) -> UserOut:
    if not accounts.is_admin(current_user.id):
        raise Forbidden("Admin access required")
    return current_user
