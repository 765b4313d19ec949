from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
import spotipy
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from errors import AssemblyError, NoMatchError, SearchTransportError


SCOPE = "playlist-modify-private"

# Statuses that mean the session itself is unusable, not just this query.
FATAL_STATUSES = {401, 403, 429}

# Spotify accepts at most 100 items per add call.
MAX_ADD_BATCH = 100


def build_spotify_client(cache_path: str = ".spotify_cache") -> spotipy.Spotify:
    """
    Spotify client using the authorization-code flow.

    Client id, secret and redirect URI come from SPOTIPY_CLIENT_ID,
    SPOTIPY_CLIENT_SECRET and SPOTIPY_REDIRECT_URI. spotipy caches the token
    at `cache_path` and refreshes it on its own.
    """
    return spotipy.Spotify(
        auth_manager=SpotifyOAuth(
            scope=SCOPE,
            open_browser=True,
            cache_handler=spotipy.CacheFileHandler(cache_path=cache_path),
        ),
    )


class SpotifyCatalog:
    """Search and playlist calls on a spotipy client, with errors mapped to ours."""

    def __init__(self, client: spotipy.Spotify):
        self.client = client

    def find(self, query: str, market: str = "US", limit: int = 3) -> List[Dict[str, Any]]:
        """
        Search tracks. Returns the candidate track objects, best first.

        Raises SearchTransportError for auth/rate-limit/connection failures
        and NoMatchError when Spotify rejects this particular query.
        """
        try:
            results = self.client.search(query, limit=limit, type="track", market=market)
        except spotipy.SpotifyException as e:
            if e.http_status in FATAL_STATUSES:
                raise SearchTransportError(f"Spotify search failed ({e.http_status}): {e.msg}") from e
            raise NoMatchError(query, reason=f"search error {e.http_status}") from e
        except (SpotifyOauthError, requests.RequestException) as e:
            raise SearchTransportError(f"Spotify search failed: {e}") from e

        tracks = (results or {}).get("tracks") or {}
        return [t for t in tracks.get("items") or [] if t]

    def current_user_id(self) -> str:
        """
        Id of the authorized user, used as playlist owner.

        Raises SearchTransportError when the session is unusable and
        AssemblyError when Spotify answers without an id.
        """
        try:
            me = self.client.me() or {}
        except (spotipy.SpotifyException, SpotifyOauthError, requests.RequestException) as e:
            raise SearchTransportError(f"Could not load the current Spotify user: {e}") from e

        user_id = me.get("id")
        if not user_id:
            raise AssemblyError("Spotify did not return a user id for the playlist owner")
        return user_id

    def create_playlist(
        self,
        owner: str,
        title: str,
        public: bool = False,
        description: str = "",
    ) -> Dict[str, Any]:
        playlist = self.client.user_playlist_create(
            owner,
            title,
            public=public,
            collaborative=False,
            description=description,
        )
        if not playlist or not playlist.get("id"):
            raise ValueError(f"Spotify returned no playlist for {title!r}")
        return playlist

    def add_items(self, playlist_id: str, track_ids: List[str], position: Optional[int] = None) -> None:
        if len(track_ids) > MAX_ADD_BATCH:
            raise ValueError(f"At most {MAX_ADD_BATCH} items per call, got {len(track_ids)}")
        self.client.playlist_add_items(playlist_id, track_ids, position=position)
