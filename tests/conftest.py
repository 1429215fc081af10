import json
import time

import pytest

from app.core.cache import CacheClient
from app.services.accounts import AccountService
from app.services.init_data import sign_init_data
from app.services.roblox import RobloxClient
from app.services.watchlist import WatchlistService
from app.stores import open_json_storage, open_sql_storage

BOT_TOKEN = "123456:TEST-bot-token"
ADMIN_ID = 1


class FakeRoblox(RobloxClient):
    """RobloxClient with canned upstream payloads instead of HTTP."""

    def __init__(self):
        super().__init__(cache=CacheClient(), cache_ttl=0)
        self.games = {}
        self.votes = {}
        self.favorites = {}
        self.places = {}
        self.users = {}
        self.offline = False
        self.calls = []

    def add_game(self, universe_id, name, visits=0, playing=0, up=0, down=0, favorites=0, place_id=None):
        self.games[universe_id] = {
            "id": universe_id,
            "name": name,
            "visits": visits,
            "playing": playing,
            "favoritedCount": favorites,
        }
        self.votes[universe_id] = {"id": universe_id, "upVotes": up, "downVotes": down}
        self.favorites[universe_id] = favorites
        if place_id is not None:
            self.places[place_id] = universe_id

    def _request(self, url, params=None):
        self.calls.append(url)
        if self.offline:
            return None
        params = params or {}
        if url.endswith("/v1/games"):
            game = self.games.get(params.get("universeIds"))
            return {"data": [game] if game else []}
        if url.endswith("/v1/games/votes"):
            votes = self.votes.get(params.get("universeIds"))
            return {"data": [votes] if votes else []}
        if url.endswith("/favorites/count"):
            universe_id = int(url.rsplit("/", 3)[-3])
            if universe_id not in self.favorites:
                return None
            return {"favoritesCount": self.favorites[universe_id]}
        if url.endswith("/v1/games/icons"):
            universe_id = params.get("universeIds")
            if universe_id not in self.games:
                return {"data": []}
            return {"data": [{"targetId": universe_id, "imageUrl": f"https://tr.rbxcdn.com/{universe_id}.png"}]}
        if url.endswith("/multiget/thumbnails"):
            universe_id = params.get("universeIds")
            return {"data": [{"thumbnails": [{"imageUrl": f"https://tr.rbxcdn.com/{universe_id}-wide.png"}]}]}
        if url.endswith("/universe"):
            place_id = int(url.rsplit("/", 2)[-2])
            universe_id = self.places.get(place_id)
            return {"universeId": universe_id} if universe_id else None
        if url.endswith("/v1/users/search"):
            keyword = params.get("keyword", "").lower()
            found = [user for user in self.users.values() if user["name"].lower() == keyword]
            return {"data": found}
        if url.endswith("/avatar-headshot"):
            return {"data": [{"imageUrl": f"https://tr.rbxcdn.com/avatar-{params.get('userIds')}.png"}]}
        if "/v1/users/" in url:
            return self.users.get(int(url.rsplit("/", 1)[-1]))
        return None


def make_init_data(user_id, bot_token=BOT_TOKEN, auth_date=None, **user_fields):
    user = {"id": user_id, "first_name": user_fields.pop("first_name", "Test"), **user_fields}
    fields = {
        "auth_date": str(auth_date or int(time.time())),
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "user": json.dumps(user, separators=(",", ":")),
    }
    return sign_init_data(fields, bot_token)


@pytest.fixture
def fake_roblox():
    return FakeRoblox()


@pytest.fixture(params=["json", "sql"])
def storage(request, tmp_path):
    if request.param == "json":
        opened = open_json_storage(None)
    else:
        opened = open_sql_storage(f"sqlite:///{tmp_path / 'stats.db'}")
    yield opened
    opened.close()


@pytest.fixture
def accounts(storage):
    return AccountService(storage.users, storage.watchlist, admin_ids={ADMIN_ID})


@pytest.fixture
def watchlist_service(storage, fake_roblox):
    return WatchlistService(storage.watchlist, fake_roblox)
