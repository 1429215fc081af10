from fastapi import APIRouter, Depends, HTTPException

from ..services.roblox import RobloxClient
from .deps import get_roblox

router = APIRouter()


def _not_found():
    return HTTPException(status_code=404, detail="Not found on Roblox")


@router.get("/user/search/{username}")
def search_user(username: str, roblox: RobloxClient = Depends(get_roblox)):
    return roblox.search_user(username)


@router.get("/user/{user_id}")
def get_user(user_id: int, roblox: RobloxClient = Depends(get_roblox)):
    user = roblox.get_user(user_id)
    if not user:
        raise _not_found()
    return user


@router.get("/avatar/{user_id}")
def get_avatar(user_id: int, roblox: RobloxClient = Depends(get_roblox)):
    return {"url": roblox.get_user_avatar(user_id)}


@router.get("/game/{universe_id}")
def get_game(universe_id: int, roblox: RobloxClient = Depends(get_roblox)):
    game = roblox.get_game(universe_id)
    if not game:
        raise _not_found()
    return {
        **game,
        "icon_url": roblox.get_game_icon(universe_id),
        "thumbnail_url": roblox.get_game_thumbnail(universe_id),
    }


@router.get("/place/{place_id}/universe")
def resolve_place(place_id: int, roblox: RobloxClient = Depends(get_roblox)):
    universe_id = roblox.get_universe_id_from_place(place_id)
    if not universe_id:
        raise _not_found()
    return {"universe_id": universe_id}
