from __future__ import annotations

from typing import Any, Dict, List, Protocol

from errors import AssemblyError
from match_tracks import ResolutionResult
from scraper import ChartDate


DEFAULT_DESCRIPTION = "Billboard Hot 100 chart, rebuilt by chart2playlist"

DEFAULT_BATCH_SIZE = 100


class PlaylistCapability(Protocol):
    def create_playlist(self, owner: str, title: str, public: bool = False, description: str = "") -> Dict[str, Any]:
        ...

    def add_items(self, playlist_id: str, track_ids: List[str]) -> None:
        ...


def playlist_title(date: ChartDate) -> str:
    """Same date, same title, so re-runs are easy to spot."""
    return f"Top 100 from {date.year} {date.month} {date.day}"


def _chunks(items: List[str], size: int) -> List[List[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def assemble_playlist(
    result: ResolutionResult,
    owner: str,
    title: str,
    catalog: PlaylistCapability,
    description: str = DEFAULT_DESCRIPTION,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Dict[str, Any]:
    """
    Create a private playlist and add the resolved tracks in chart order.

    Parameters
    ----------
    result : ResolutionResult
        Output of resolve_tracks.
    owner : str
        Spotify user id that will own the playlist.
    title : str
        Playlist name, usually playlist_title(date).
    catalog : PlaylistCapability
        Anything with create_playlist() and add_items().
    batch_size : int
        Max ids per add call (Spotify allows 100).

    Returns
    -------
    JSON-friendly dict:
        - playlist_id, title, url
        - track_count: number of ids added
        - batches: number of add calls made

    Raises AssemblyError if the playlist cannot be created or a chunk cannot
    be added. In the chunk case the error carries the chunk index and how
    many tracks made it in before the failure.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    try:
        playlist = catalog.create_playlist(owner, title, public=False, description=description)
        playlist_id = playlist["id"]
    except Exception as e:
        raise AssemblyError(f"Could not create playlist {title!r}: {e}") from e
    if not playlist_id:
        raise AssemblyError(f"Could not create playlist {title!r}: no playlist id returned")
    track_ids = result.track_ids
    batches = _chunks(track_ids, batch_size)

    added = 0
    for i, batch in enumerate(batches):
        try:
            catalog.add_items(playlist_id, batch)
        except Exception as e:
            raise AssemblyError(
                f"Adding chunk {i + 1}/{len(batches)} to playlist {playlist_id} failed "
                f"after {added} of {len(track_ids)} tracks: {e}",
                playlist_id=playlist_id,
                chunk_index=i,
                added=added,
            ) from e
        added += len(batch)

    return {
        "playlist_id": playlist_id,
        "title": title,
        "url": (playlist.get("external_urls") or {}).get("spotify"),
        "track_count": added,
        "batches": len(batches),
    }
