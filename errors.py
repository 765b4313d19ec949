from __future__ import annotations

from typing import Optional


class Chart2PlaylistError(Exception):
    """Base class for every error raised by the chart-to-playlist pipeline."""


class FetchError(Chart2PlaylistError):
    """Chart page unreachable or answered with a non-success status."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status = status
        msg = f"Could not fetch chart page {url}: {reason}"
        super().__init__(msg)


class ParseError(Chart2PlaylistError):
    """Chart markup did not yield any (title, artist) pairs."""


class NoMatchError(Chart2PlaylistError):
    """The catalog had nothing usable for one query. Never fatal."""

    def __init__(self, query: str, reason: str = "no results"):
        self.query = query
        self.reason = reason
        super().__init__(f"{reason}: {query}")


class SearchTransportError(Chart2PlaylistError):
    """Authentication or transport failure from the catalog search."""


class AssemblyError(Chart2PlaylistError):
    """
    Playlist creation or item insertion failed.

    When an add chunk fails, `chunk_index` is the 0-based index of the failing
    chunk and `added` is how many tracks had already been inserted.
    """

    def __init__(
        self,
        message: str,
        playlist_id: Optional[str] = None,
        chunk_index: Optional[int] = None,
        added: int = 0,
    ):
        self.playlist_id = playlist_id
        self.chunk_index = chunk_index
        self.added = added
        super().__init__(message)
