"""
Unit tests for spotify_catalog.py

To run: pytest tests/test_spotify_catalog.py -v
"""

from unittest.mock import Mock

import pytest
import requests
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from errors import AssemblyError, NoMatchError, SearchTransportError
from spotify_catalog import MAX_ADD_BATCH, SpotifyCatalog


def _spotify_error(status):
    return spotipy.SpotifyException(status, -1, f"HTTP {status}")


class TestFind:
    """Tests for SpotifyCatalog.find"""

    def test_find_returns_items(self):
        client = Mock()
        client.search.return_value = {"tracks": {"items": [{"id": "a"}, {"id": "b"}]}}

        items = SpotifyCatalog(client).find("Song artist:X year:2018-2022", market="US", limit=3)

        assert [t["id"] for t in items] == ["a", "b"]
        client.search.assert_called_once_with(
            "Song artist:X year:2018-2022", limit=3, type="track", market="US"
        )

    def test_find_empty(self):
        client = Mock()
        client.search.return_value = {"tracks": {"items": []}}
        assert SpotifyCatalog(client).find("q") == []

    def test_find_none_response(self):
        client = Mock()
        client.search.return_value = None
        assert SpotifyCatalog(client).find("q") == []

    @pytest.mark.parametrize("status", [401, 403, 429])
    def test_auth_and_rate_limit_are_fatal(self, status):
        client = Mock()
        client.search.side_effect = _spotify_error(status)

        with pytest.raises(SearchTransportError):
            SpotifyCatalog(client).find("q")

    def test_bad_query_is_no_match(self):
        client = Mock()
        client.search.side_effect = _spotify_error(400)

        with pytest.raises(NoMatchError) as exc:
            SpotifyCatalog(client).find("q")
        assert exc.value.query == "q"

    def test_connection_error_is_fatal(self):
        client = Mock()
        client.search.side_effect = requests.ConnectionError("down")

        with pytest.raises(SearchTransportError):
            SpotifyCatalog(client).find("q")

    @pytest.mark.parametrize(
        "error",
        [
            requests.Timeout("read timed out"),
            requests.exceptions.ChunkedEncodingError("connection reset"),
            requests.exceptions.ContentDecodingError("bad gzip"),
            requests.RequestException("generic"),
            SpotifyOauthError("invalid_grant"),
        ],
    )
    def test_other_transport_errors_are_fatal(self, error):
        client = Mock()
        client.search.side_effect = error

        with pytest.raises(SearchTransportError):
            SpotifyCatalog(client).find("q")


class TestPlaylistCalls:
    """Tests for the playlist side of SpotifyCatalog"""

    def test_current_user_id(self):
        client = Mock()
        client.me.return_value = {"id": "user-1"}
        assert SpotifyCatalog(client).current_user_id() == "user-1"

    def test_current_user_id_missing(self):
        """Test an answer without an id is an assembly problem, not transport"""
        client = Mock()
        client.me.return_value = {}
        with pytest.raises(AssemblyError):
            SpotifyCatalog(client).current_user_id()

    @pytest.mark.parametrize(
        "error",
        [
            spotipy.SpotifyException(401, -1, "The access token expired"),
            SpotifyOauthError("invalid_grant"),
            requests.ConnectionError("down"),
        ],
    )
    def test_current_user_id_session_errors(self, error):
        client = Mock()
        client.me.side_effect = error
        with pytest.raises(SearchTransportError):
            SpotifyCatalog(client).current_user_id()

    def test_create_playlist(self):
        client = Mock()
        client.user_playlist_create.return_value = {"id": "pl-1"}

        playlist = SpotifyCatalog(client).create_playlist("user-1", "Top 100", description="d")

        assert playlist["id"] == "pl-1"
        client.user_playlist_create.assert_called_once_with(
            "user-1", "Top 100", public=False, collaborative=False, description="d"
        )

    def test_create_playlist_without_id(self):
        client = Mock()
        client.user_playlist_create.return_value = None
        with pytest.raises(ValueError):
            SpotifyCatalog(client).create_playlist("user-1", "Top 100")

    def test_add_items(self):
        client = Mock()
        SpotifyCatalog(client).add_items("pl-1", ["a", "b"])
        client.playlist_add_items.assert_called_once_with("pl-1", ["a", "b"], position=None)

    def test_add_items_over_limit(self):
        client = Mock()
        with pytest.raises(ValueError):
            SpotifyCatalog(client).add_items("pl-1", ["x"] * (MAX_ADD_BATCH + 1))
        client.playlist_add_items.assert_not_called()
