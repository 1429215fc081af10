from typing import List

from fastapi import APIRouter, Depends

from ..schemas import UserOut, WatchlistAddIn, WatchlistEntryOut, WatchlistRefreshOut
from ..services.watchlist import WatchlistService
from .deps import get_approved_user, get_watchlist

router = APIRouter()


@router.get("", response_model=List[WatchlistEntryOut])
def list_games(
    current_user: UserOut = Depends(get_approved_user),
    watchlist: WatchlistService = Depends(get_watchlist),
):
    return watchlist.list(current_user)


@router.post("", response_model=WatchlistEntryOut, status_code=201)
def add_game(
    payload: WatchlistAddIn,
    current_user: UserOut = Depends(get_approved_user),
    watchlist: WatchlistService = Depends(get_watchlist),
):
    return watchlist.add_game(
        current_user,
        universe_id=payload.universe_id,
        query=payload.query,
        name=payload.name,
    )


@router.post("/refresh", response_model=WatchlistRefreshOut)
def refresh_games(
    current_user: UserOut = Depends(get_approved_user),
    watchlist: WatchlistService = Depends(get_watchlist),
):
    return watchlist.refresh(current_user)


@router.delete("/{universe_id}")
def remove_game(
    universe_id: int,
    current_user: UserOut = Depends(get_approved_user),
    watchlist: WatchlistService = Depends(get_watchlist),
):
    watchlist.remove(current_user, universe_id)
    return {"success": True}
