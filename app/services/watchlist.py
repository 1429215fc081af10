from __future__ import annotations

import logging
from typing import Optional

from ..core.errors import Forbidden, NotFound
from ..schemas import (
    GameMetadata,
    GameMetrics,
    UserOut,
    WatchlistEntryOut,
    WatchlistRefreshOut,
)
from ..stores.base import WatchlistStore
from .roblox import RobloxClient

logger = logging.getLogger(__name__)


def _require_approved(user: UserOut) -> None:
    if user.status != "approved":
        raise Forbidden("Not approved")


class WatchlistService:
    def __init__(self, store: WatchlistStore, roblox: RobloxClient):
        self.store = store
        self.roblox = roblox

    def list(self, user: UserOut) -> list[WatchlistEntryOut]:
        _require_approved(user)
        return self.store.list(user.id)

    def add(self, user: UserOut, external_game_id: int, metadata: GameMetadata) -> WatchlistEntryOut:
        _require_approved(user)
        return self.store.add(user.id, external_game_id, metadata)

    def add_game(
        self,
        user: UserOut,
        universe_id: Optional[int] = None,
        query: Optional[str] = None,
        name: Optional[str] = None,
    ) -> WatchlistEntryOut:
        """Resolve the game on Roblox and store it with its current metrics."""
        _require_approved(user)
        if universe_id is None:
            universe_id = self.roblox.resolve_universe_id(query or "")
        if not universe_id:
            raise NotFound("Game not found")

        game = self.roblox.get_game(universe_id)
        if not game and not name:
            raise NotFound("Game not found")
        # A client that already confirmed the game may add it while Roblox is down.
        metrics = (self.roblox.fetch_metrics(universe_id) if game else None) or GameMetrics()
        metadata = GameMetadata(
            name=name or game.get("name"),
            thumbnail_url=self.roblox.get_game_icon(universe_id),
            **metrics.model_dump(),
        )
        return self.store.add(user.id, universe_id, metadata)

    def remove(self, user: UserOut, external_game_id: int) -> None:
        _require_approved(user)
        self.store.remove(user.id, external_game_id)

    def refresh(self, user: UserOut) -> WatchlistRefreshOut:
        """Pull fresh metrics for every tracked game.

        A game whose lookup fails keeps its previously cached numbers.
        """
        _require_approved(user)
        failed: list[int] = []
        refreshed = 0
        for entry in self.store.list(user.id):
            metrics = self.roblox.fetch_metrics(entry.external_game_id)
            if metrics is None:
                failed.append(entry.external_game_id)
                continue
            try:
                self.store.refresh_metrics(user.id, entry.external_game_id, metrics)
            except NotFound:
                # Removed concurrently; nothing to refresh.
                continue
            refreshed += 1
        if failed:
            logger.warning("Metric refresh failed for user %s games %s", user.id, failed)
        return WatchlistRefreshOut(
            refreshed=refreshed,
            failed=failed,
            games=self.store.list(user.id),
        )
