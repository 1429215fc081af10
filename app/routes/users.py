from fastapi import APIRouter, Depends

from ..schemas import ExternalAccount, SettingsUpdate, UserOut, UserOverviewOut
from ..services.accounts import AccountService
from ..services.watchlist import WatchlistService
from .deps import get_accounts, get_current_user, get_watchlist

router = APIRouter()


@router.get("", response_model=UserOverviewOut)
def get_me(
    current_user: UserOut = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
    watchlist: WatchlistService = Depends(get_watchlist),
):
    return {
        "user": current_user,
        "games": watchlist.list(current_user) if current_user.status == "approved" else [],
        "is_admin": accounts.is_admin(current_user.id),
    }


@router.put("/settings", response_model=UserOut)
def update_settings(
    payload: SettingsUpdate,
    current_user: UserOut = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.update_settings(current_user.id, payload)


@router.post("/roblox", response_model=UserOut)
def link_roblox(
    payload: ExternalAccount,
    current_user: UserOut = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.link_external_account(current_user.id, payload)


@router.delete("/roblox", response_model=UserOut)
def unlink_roblox(
    current_user: UserOut = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.unlink_external_account(current_user.id)
