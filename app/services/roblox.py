from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

import requests

from ..core.cache import CacheClient, cache_client
from ..core.config import (
    ROBLOX_APIS_URL,
    ROBLOX_CACHE_TTL_SECONDS,
    ROBLOX_GAMES_API_URL,
    ROBLOX_REQUEST_TIMEOUT_SECONDS,
    ROBLOX_THUMBNAILS_API_URL,
    ROBLOX_USERS_API_URL,
)
from ..schemas import GameMetrics

logger = logging.getLogger(__name__)

_GAME_URL_RE = re.compile(r"roblox\.com/games/(\d+)", re.IGNORECASE)
_SEARCH_LIMIT = 10


def _first(payload: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    items = (payload or {}).get("data") or []
    if not items or not isinstance(items[0], dict):
        return None
    return items[0]


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class RobloxClient:
    """Thin pass-through to the public Roblox REST endpoints.

    Lookups never raise on upstream trouble; they return None and the caller
    decides how to degrade.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Optional[CacheClient] = None,
        timeout: int = ROBLOX_REQUEST_TIMEOUT_SECONDS,
        cache_ttl: int = ROBLOX_CACHE_TTL_SECONDS,
    ):
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "roblox-game-stats/1.0")
        self.cache = cache or cache_client
        self.timeout = timeout
        self.cache_ttl = cache_ttl

    def _request(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        cache_key = f"roblox:{url}:{sorted((params or {}).items())}"
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return cached
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            if response.status_code != 200:
                logger.warning("Roblox API %s returned %s", url, response.status_code)
                return None
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Roblox API %s failed: %s", url, exc)
            return None
        if not isinstance(payload, dict):
            return None
        self.cache.set_json(cache_key, payload, ttl=self.cache_ttl)
        return payload

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        return self._request(f"{ROBLOX_USERS_API_URL.rstrip('/')}/v1/users/{int(user_id)}")

    def search_user(self, username: str) -> Optional[Dict[str, Any]]:
        keyword = str(username or "").strip()
        if not keyword:
            return None
        payload = self._request(
            f"{ROBLOX_USERS_API_URL.rstrip('/')}/v1/users/search",
            {"keyword": keyword, "limit": _SEARCH_LIMIT},
        )
        return _first(payload)

    def get_user_avatar(self, user_id: int) -> Optional[str]:
        payload = self._request(
            f"{ROBLOX_THUMBNAILS_API_URL.rstrip('/')}/v1/users/avatar-headshot",
            {"userIds": int(user_id), "size": "150x150", "format": "Png"},
        )
        item = _first(payload)
        return item.get("imageUrl") if item else None

    def get_game(self, universe_id: int) -> Optional[Dict[str, Any]]:
        payload = self._request(
            f"{ROBLOX_GAMES_API_URL.rstrip('/')}/v1/games",
            {"universeIds": int(universe_id)},
        )
        return _first(payload)

    def get_game_votes(self, universe_id: int) -> Optional[Dict[str, Any]]:
        payload = self._request(
            f"{ROBLOX_GAMES_API_URL.rstrip('/')}/v1/games/votes",
            {"universeIds": int(universe_id)},
        )
        return _first(payload)

    def get_game_favorites(self, universe_id: int) -> Optional[int]:
        payload = self._request(
            f"{ROBLOX_GAMES_API_URL.rstrip('/')}/v1/games/{int(universe_id)}/favorites/count"
        )
        if not payload or "favoritesCount" not in payload:
            return None
        return _as_int(payload.get("favoritesCount"))

    def get_game_icon(self, universe_id: int) -> Optional[str]:
        payload = self._request(
            f"{ROBLOX_THUMBNAILS_API_URL.rstrip('/')}/v1/games/icons",
            {"universeIds": int(universe_id), "size": "150x150", "format": "Png"},
        )
        item = _first(payload)
        return item.get("imageUrl") if item else None

    def get_game_thumbnail(self, universe_id: int) -> Optional[str]:
        payload = self._request(
            f"{ROBLOX_THUMBNAILS_API_URL.rstrip('/')}/v1/games/multiget/thumbnails",
            {"universeIds": int(universe_id), "size": "768x432", "format": "Png"},
        )
        item = _first(payload)
        thumbnails = (item or {}).get("thumbnails") or []
        return thumbnails[0].get("imageUrl") if thumbnails else None

    def get_universe_id_from_place(self, place_id: int) -> Optional[int]:
        payload = self._request(
            f"{ROBLOX_APIS_URL.rstrip('/')}/universes/v1/places/{int(place_id)}/universe"
        )
        universe_id = _as_int((payload or {}).get("universeId"))
        return universe_id or None

    def resolve_universe_id(self, query: str) -> Optional[int]:
        """Accept a universe id, a place id or a roblox.com/games/<placeId> link."""
        raw = str(query or "").strip()
        if raw.isdigit():
            if self.get_game(int(raw)):
                return int(raw)
            return self.get_universe_id_from_place(int(raw))
        match = _GAME_URL_RE.search(raw)
        if match:
            return self.get_universe_id_from_place(int(match.group(1)))
        return None

    def fetch_metrics(self, universe_id: int) -> Optional[GameMetrics]:
        """Current numbers for a game, or None when any lookup the numbers need fails."""
        game = self.get_game(universe_id)
        if not game:
            return None
        votes = self.get_game_votes(universe_id)
        if votes is None:
            return None
        favorites = self.get_game_favorites(universe_id)
        if favorites is None:
            favorites = _as_int(game.get("favoritedCount"))
        return GameMetrics(
            visits=_as_int(game.get("visits")),
            playing=_as_int(game.get("playing")),
            favorites=favorites,
            up_votes=_as_int(votes.get("upVotes")),
            down_votes=_as_int(votes.get("downVotes")),
        )


roblox_client = RobloxClient()
