from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..schemas import AdminStatsOut, UserOut, UserStatus
from ..services.accounts import AccountService
from .deps import get_accounts, get_admin_user

router = APIRouter()


@router.get("/stats", response_model=AdminStatsOut)
def get_stats(
    _admin: UserOut = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.stats()


@router.get("/pending", response_model=List[UserOut])
def list_pending(
    _admin: UserOut = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.list_users(status="pending")


@router.get("/users", response_model=List[UserOut])
def list_users(
    status: Optional[UserStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    _admin: UserOut = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.list_users(status=status, limit=limit)


@router.post("/approve/{user_id}", response_model=UserOut)
def approve_user(
    user_id: int,
    admin: UserOut = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.approve(user_id, admin.id)


@router.post("/reject/{user_id}", response_model=UserOut)
def reject_user(
    user_id: int,
    admin: UserOut = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.reject(user_id, admin.id)


@router.post("/ban/{user_id}", response_model=UserOut)
def ban_user(
    user_id: int,
    admin: UserOut = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.ban(user_id, admin.id)


@router.post("/unban/{user_id}", response_model=UserOut)
def unban_user(
    user_id: int,
    admin: UserOut = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.unban(user_id, admin.id)
