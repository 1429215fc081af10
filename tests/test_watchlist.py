"""Tests for the watch-list service on top of a fake Roblox upstream."""

import pytest

from app.core.errors import Conflict, Forbidden, NotFound
from app.schemas import GameMetadata, TelegramIdentity
from conftest import ADMIN_ID


@pytest.fixture
def approved_user(accounts):
    accounts.get_or_create(TelegramIdentity(id=42, first_name="Alice"))
    return accounts.approve(42, ADMIN_ID)


class TestAddGame:
    def test_end_to_end_first_contact_to_listing(self, accounts, watchlist_service):
        user = accounts.get_or_create(TelegramIdentity(id=42, first_name="Alice"))
        assert (user.status, user.language, user.theme) == ("pending", "ru", "dark")

        user = accounts.approve(42, ADMIN_ID)
        watchlist_service.add(user, 999, GameMetadata(name="Obby"))

        games = watchlist_service.list(user)
        assert [(game.external_game_id, game.name) for game in games] == [(999, "Obby")]

    def test_pending_user_cannot_add(self, accounts, watchlist_service):
        user = accounts.get_or_create(TelegramIdentity(id=42))
        with pytest.raises(Forbidden):
            watchlist_service.add(user, 999, GameMetadata(name="Obby"))
        with pytest.raises(Forbidden):
            watchlist_service.list(user)

    def test_add_by_universe_id_fetches_metrics(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.add_game(999, "Obby", visits=1500, playing=12, up=90, down=10, favorites=40)

        entry = watchlist_service.add_game(approved_user, universe_id=999)

        assert entry.name == "Obby"
        assert entry.visits == 1500
        assert entry.playing == 12
        assert entry.favorites == 40
        assert (entry.up_votes, entry.down_votes) == (90, 10)
        assert entry.thumbnail_url == "https://tr.rbxcdn.com/999.png"

    def test_add_by_place_link(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.add_game(999, "Obby", place_id=4242)

        entry = watchlist_service.add_game(
            approved_user, query="https://www.roblox.com/games/4242/Obby-Game"
        )
        assert entry.external_game_id == 999

    def test_add_by_place_id_digits(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.add_game(999, "Obby", place_id=4242)
        assert watchlist_service.add_game(approved_user, query="4242").external_game_id == 999

    def test_unknown_game(self, approved_user, watchlist_service):
        with pytest.raises(NotFound):
            watchlist_service.add_game(approved_user, universe_id=123)
        with pytest.raises(NotFound):
            watchlist_service.add_game(approved_user, query="not a game")

    def test_named_game_added_while_upstream_down(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.offline = True
        entry = watchlist_service.add_game(approved_user, universe_id=999, name="Obby")
        assert entry.name == "Obby"
        assert entry.visits == 0

    def test_duplicate(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.add_game(999, "Obby")
        watchlist_service.add_game(approved_user, universe_id=999)
        with pytest.raises(Conflict):
            watchlist_service.add_game(approved_user, universe_id=999)


class TestRefresh:
    def test_refresh_updates_metrics(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.add_game(999, "Obby", visits=10)
        watchlist_service.add_game(approved_user, universe_id=999)
        fake_roblox.add_game(999, "Obby", visits=25, playing=3)

        result = watchlist_service.refresh(approved_user)

        assert result.refreshed == 1
        assert result.failed == []
        assert result.games[0].visits == 25
        assert result.games[0].playing == 3

    def test_failed_lookup_keeps_cached_numbers(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.add_game(999, "Obby", visits=10)
        fake_roblox.add_game(1000, "Tycoon", visits=20)
        watchlist_service.add_game(approved_user, universe_id=999)
        watchlist_service.add_game(approved_user, universe_id=1000)
        del fake_roblox.games[999]
        fake_roblox.add_game(1000, "Tycoon", visits=30)

        result = watchlist_service.refresh(approved_user)

        assert result.refreshed == 1
        assert result.failed == [999]
        visits = {game.external_game_id: game.visits for game in result.games}
        assert visits == {999: 10, 1000: 30}

    def test_failed_votes_lookup_keeps_cached_votes(self, approved_user, watchlist_service, fake_roblox):
        fake_roblox.add_game(999, "Obby", visits=10, up=90, down=10)
        watchlist_service.add_game(approved_user, universe_id=999)
        fake_roblox.add_game(999, "Obby", visits=50)
        del fake_roblox.votes[999]

        result = watchlist_service.refresh(approved_user)

        assert result.refreshed == 0
        assert result.failed == [999]
        game = result.games[0]
        assert (game.visits, game.up_votes, game.down_votes) == (10, 90, 10)

    def test_remove_missing_game_is_noop(self, approved_user, watchlist_service):
        watchlist_service.remove(approved_user, 999)
        assert watchlist_service.list(approved_user) == []
