"""Tests for the Roblox HTTP client plumbing (no network)."""

from unittest.mock import MagicMock

import requests

from app.core.cache import CacheClient
from app.services.roblox import RobloxClient


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def _client(*responses):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    return RobloxClient(session=session, cache=CacheClient(), timeout=3, cache_ttl=60), session


class TestRequest:
    def test_successful_lookup_is_cached(self):
        client, session = _client(_response(payload={"data": [{"id": 999, "name": "Obby"}]}))
        assert client.get_game(999)["name"] == "Obby"
        assert client.get_game(999)["name"] == "Obby"
        assert session.get.call_count == 1
        _, kwargs = session.get.call_args
        assert kwargs["timeout"] == 3
        assert kwargs["params"] == {"universeIds": 999}

    def test_http_error_returns_none(self):
        client, _ = _client(_response(status_code=503))
        assert client.get_game(999) is None

    def test_network_error_returns_none(self):
        client, _ = _client(requests.ConnectionError("boom"))
        assert client.get_user(1) is None

    def test_bad_json_returns_none(self):
        response = _response()
        response.json.side_effect = ValueError("not json")
        client, _ = _client(response)
        assert client.get_user(1) is None

    def test_failures_are_not_cached(self):
        client, session = _client(
            _response(status_code=500),
            _response(payload={"id": 1, "name": "builderman"}),
        )
        assert client.get_user(1) is None
        assert client.get_user(1)["name"] == "builderman"
        assert session.get.call_count == 2


class TestFetchMetrics:
    def test_combines_game_votes_and_favorites(self):
        client, _ = _client(
            _response(payload={"data": [{"id": 999, "visits": 100, "playing": 4, "favoritedCount": 1}]}),
            _response(payload={"data": [{"id": 999, "upVotes": 8, "downVotes": 2}]}),
            _response(payload={"favoritesCount": 7}),
        )
        metrics = client.fetch_metrics(999)
        assert (metrics.visits, metrics.playing, metrics.favorites) == (100, 4, 7)
        assert (metrics.up_votes, metrics.down_votes) == (8, 2)

    def test_failed_votes_lookup_means_no_metrics(self):
        client, _ = _client(
            _response(payload={"data": [{"id": 999, "visits": 100, "playing": 4}]}),
            _response(status_code=503),
        )
        assert client.fetch_metrics(999) is None

    def test_missing_game(self):
        client, _ = _client(_response(payload={"data": []}))
        assert client.fetch_metrics(999) is None


class TestResolveUniverse:
    def test_non_numeric_non_link(self):
        client, session = _client()
        assert client.resolve_universe_id("obby") is None
        session.get.assert_not_called()
