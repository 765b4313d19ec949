from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol

from tqdm import tqdm

from errors import NoMatchError
from scraper import ChartDate, ChartEntry


POLICIES = ("first", "scored")

# Weights for the "scored" policy: title matters most, then artist, then year.
TITLE_WEIGHT = 0.5
ARTIST_WEIGHT = 0.35
YEAR_WEIGHT = 0.15


class SearchCapability(Protocol):
    def find(self, query: str, market: str = "US", limit: int = 3) -> List[Dict[str, Any]]:
        ...


@dataclass(frozen=True)
class ResolvedTrack:
    identifier: str
    entry: ChartEntry


@dataclass(frozen=True)
class SkippedEntry:
    entry: ChartEntry
    reason: str


@dataclass
class ResolutionResult:
    tracks: List[ResolvedTrack] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def track_ids(self) -> List[str]:
        return [t.identifier for t in self.tracks]

    def summary(self) -> Dict[str, Any]:
        return {
            "total": len(self.tracks) + len(self.skipped),
            "resolved": len(self.tracks),
            "skipped": len(self.skipped),
            "skipped_titles": [f"{s.entry.title} - {s.entry.artist}" for s in self.skipped],
        }


def _norm(s: str) -> str:
    """
    Normalize strings for comparing chart text with catalog text:
    - case differences
    - curly quotes vs straight quotes
    - punctuation
    - common 'feat.' patterns
    """
    if not s:
        return ""
    s = unicodedata.normalize("NFKD", s).lower()

    # Charts credit "X Featuring Y"; catalogs usually split features out
    s = re.sub(r"\s*\(feat\.?.*?\)", "", s)
    s = re.sub(r"\s*\[feat\.?.*?\]", "", s)
    s = re.sub(r"\s+(feat\.?|featuring)\s+.*$", "", s)

    s = s.replace("&", "and")
    s = re.sub(r"[^a-z0-9\s]", "", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _token_overlap_score(want: str, got: str) -> float:
    """Share of the wanted tokens present in the candidate."""
    w = set(_norm(want).split())
    g = set(_norm(got).split())
    if not w or not g:
        return 0.0
    return len(w & g) / len(w)


def _release_year(candidate: Dict[str, Any]) -> Optional[int]:
    release_date = (candidate.get("album") or {}).get("release_date") or ""
    m = re.match(r"(\d{4})", release_date)
    return int(m.group(1)) if m else None


def year_window(date: ChartDate, window: int = 2) -> tuple[int, int]:
    return date.year - window, date.year + window


def build_search_query(entry: ChartEntry, date: ChartDate, window: int = 2) -> str:
    """
    Free-text title, then the artist filter, then the year-range filter.

    >>> build_search_query(ChartEntry(1, "Song A", "Artist X"), ChartDate(2020, "01", "04"))
    'Song A artist:Artist X year:2018-2022'
    """
    lo, hi = year_window(date, window)
    # The search syntax needs a space between the free text and each filter.
    return f"{entry.title} artist:{entry.artist} year:{lo}-{hi}"


def score_candidate(entry: ChartEntry, candidate: Dict[str, Any], date: ChartDate, window: int = 2) -> float:
    """
    Confidence in [0, 1] that `candidate` is the charting recording.

    Title and artist use token overlap. Year scores 1.0 in the chart year,
    falling linearly to 0 just outside the window.
    """
    cand_title = candidate.get("name") or ""
    cand_artist = " ".join(a.get("name", "") for a in candidate.get("artists") or [])

    title_score = _token_overlap_score(entry.title, cand_title)
    artist_score = _token_overlap_score(entry.artist, cand_artist)

    year_score = 0.0
    released = _release_year(candidate)
    if released is not None:
        distance = abs(released - date.year)
        year_score = max(0.0, 1.0 - distance / (window + 1))

    return TITLE_WEIGHT * title_score + ARTIST_WEIGHT * artist_score + YEAR_WEIGHT * year_score


def select_candidate(
    entry: ChartEntry,
    candidates: List[Dict[str, Any]],
    date: ChartDate,
    policy: str = "first",
    min_confidence: float = 0.7,
    window: int = 2,
) -> Optional[Dict[str, Any]]:
    """Pick one candidate according to `policy`, or None."""
    if not candidates:
        return None

    if policy == "first":
        # The query filters do the disambiguation; rank 1 wins.
        return candidates[0]

    best = None
    best_score = -1.0
    for cand in candidates:
        score = score_candidate(entry, cand, date, window)
        if score > best_score:
            best, best_score = cand, score

    return best if best_score >= min_confidence else None


def resolve_tracks(
    entries: Iterable[ChartEntry],
    date: ChartDate,
    catalog: SearchCapability,
    market: str = "US",
    limit: int = 3,
    policy: str = "first",
    min_confidence: float = 0.7,
    window: int = 2,
    show_progress: bool = False,
) -> ResolutionResult:
    """
    Resolve chart entries to catalog track ids, one search at a time.

    Parameters
    ----------
    entries : iterable of ChartEntry
        Chart entries in rank order.
    date : ChartDate
        Chart date; its year centres the search window.
    catalog : SearchCapability
        Anything with `find(query, market, limit)` returning track dicts.
    policy : str
        "first" takes the top search result. "scored" takes the best
        candidate scoring at least `min_confidence`.
    show_progress : bool
        Show a tqdm progress bar.

    Returns
    -------
    ResolutionResult with the resolved tracks in input order and the
    skipped entries with their reasons.

    NoMatchError from the catalog skips the entry. Any other error (notably
    SearchTransportError) stops the loop and propagates.
    """
    if policy not in POLICIES:
        raise ValueError(f"Unknown selection policy: {policy!r} (expected one of {POLICIES})")

    entries = list(entries)
    result = ResolutionResult()

    iterator = entries
    if show_progress:
        iterator = tqdm(entries, desc="Searching tracks", unit="track")

    for entry in iterator:
        query = build_search_query(entry, date, window)
        try:
            candidates = catalog.find(query, market=market, limit=limit)
        except NoMatchError as e:
            result.skipped.append(SkippedEntry(entry, e.reason))
            continue

        chosen = select_candidate(entry, candidates or [], date, policy, min_confidence, window)
        if chosen is None:
            reason = "no results" if not candidates else "no candidate above threshold"
            result.skipped.append(SkippedEntry(entry, reason))
            continue

        track_id = chosen.get("id")
        if not track_id:
            result.skipped.append(SkippedEntry(entry, "match has no track id"))
            continue

        result.tracks.append(ResolvedTrack(identifier=track_id, entry=entry))

    return result
