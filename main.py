#!/usr/bin/env python3
"""
Chart2Playlist - Main Entry Point

This script provides an interactive workflow to:
1. Scrape the Billboard Hot 100 for a date you choose
2. Find each charting song on Spotify
3. Create a private Spotify playlist with the songs in chart order
"""

import copy
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv

from create_playlist import DEFAULT_DESCRIPTION, assemble_playlist, playlist_title
from errors import Chart2PlaylistError, FetchError, ParseError
from match_tracks import ResolutionResult, resolve_tracks
from scraper import (
    CHART_BASE_URL,
    ChartDate,
    ChartEntry,
    SelectorConfig,
    chart_scraper,
    parse_chart_date,
)
from spotify_catalog import SpotifyCatalog, build_spotify_client


# ----------------------------
# Settings management
# ----------------------------

SETTINGS_FILE = Path("chart2playlist_settings.json")

DEFAULT_SETTINGS = {
    "chart": {
        "base_url": CHART_BASE_URL,
        "title_selector": "li.o-chart-results-list__item h3#title-of-a-story",
        "artist_selector": "li.o-chart-results-list__item h3#title-of-a-story + span.c-label",
        "row_selector": "",
        "timeout": 30,
    },
    "search": {
        "market": "US",
        "limit": 3,
        "policy": "first",  # "first" or "scored"
        "min_confidence": 0.7,
        "year_window": 2,
    },
    "playlist": {
        "batch_size": 100,
        "description": DEFAULT_DESCRIPTION,
    },
    "spotify": {
        "cache_path": ".spotify_cache",
    },
}


def load_settings() -> dict:
    """
    Load settings from file, returning defaults if file doesn't exist.

    Returns:
        Settings dictionary with defaults merged
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    if not SETTINGS_FILE.exists():
        return settings

    try:
        with open(SETTINGS_FILE, 'r', encoding='utf-8') as f:
            user_settings = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Warning: Could not load settings: {e}")
        print("Using default settings.")
        return settings

    # Deep merge one level of sections
    for section, values in user_settings.items():
        if isinstance(values, dict) and isinstance(settings.get(section), dict):
            settings[section].update(values)
        else:
            settings[section] = values
    return settings


def save_settings(settings: dict) -> None:
    """
    Save settings to file.

    Args:
        settings: Settings dictionary to save
    """
    try:
        with open(SETTINGS_FILE, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2, ensure_ascii=False)
    except OSError as e:
        print(f"Error saving settings: {e}")


def get_setting(key_path: str, default=None, settings: Optional[dict] = None) -> Any:
    """
    Get a setting value using dot notation (e.g., "chart.title_selector").

    Args:
        key_path: Dot-separated path to setting
        default: Default value if setting not found
        settings: Already loaded settings (loaded from disk if omitted)

    Returns:
        Setting value or default
    """
    value = settings if settings is not None else load_settings()

    for key in key_path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value if value != "" else default


@dataclass(frozen=True)
class PipelineConfig:
    selectors: SelectorConfig
    base_url: str = CHART_BASE_URL
    timeout: int = 30
    market: str = "US"
    limit: int = 3
    policy: str = "first"
    min_confidence: float = 0.7
    year_window: int = 2
    batch_size: int = 100
    description: str = DEFAULT_DESCRIPTION


def build_config(settings: dict, env: Optional[Dict[str, str]] = None) -> PipelineConfig:
    """
    Turn loaded settings into the config object handed to each stage.

    SONG_SELECTOR / ARTIST_SELECTOR in the environment override the
    selectors from the settings file.
    """
    env = os.environ if env is None else env

    def s(path, default=None):
        return get_setting(path, default, settings=settings)

    selectors = SelectorConfig(
        title_selector=env.get("SONG_SELECTOR") or s("chart.title_selector"),
        artist_selector=env.get("ARTIST_SELECTOR") or s("chart.artist_selector"),
        row_selector=s("chart.row_selector", ""),
    )
    return PipelineConfig(
        selectors=selectors,
        base_url=s("chart.base_url", CHART_BASE_URL),
        timeout=int(s("chart.timeout", 30)),
        market=s("search.market", "US"),
        limit=int(s("search.limit", 3)),
        policy=s("search.policy", "first"),
        min_confidence=float(s("search.min_confidence", 0.7)),
        year_window=int(s("search.year_window", 2)),
        batch_size=int(s("playlist.batch_size", 100)),
        description=s("playlist.description", DEFAULT_DESCRIPTION),
    )


# ----------------------------
# Terminal output
# ----------------------------

def print_separator(char="=", length=60):
    """Print a visual separator line."""
    print(char * length)


def print_title(text: str, char="=", length=60):
    """
    Print a centered title with separators above and below.

    Args:
        text: Text to center
        char: Character to use for separator (default: "=")
        length: Length of separator line (default: 60)
    """
    print_separator(char, length)
    padding = (length - len(text)) // 2
    print(" " * padding + text)
    print_separator(char, length)


def print_banner():
    banner = r"""
    ___ _                _   ___  ___ _              _ _    _
   / __| |_  __ _ _ _ __| |_|_  )| _ \ |__ _ _  _ __| (_)__| |_
  | (__| ' \/ _` | '_|_ _|  _|/ / |  _/ / _` | || / _| | (_-<  _|
   \___|_||_\__,_|_|   |_| \__/___||_| |_\__,_|\_, \__|_/__/\__|
                                               |__/
            hot 100 charts → spotify playlists
"""
    print(banner)


def print_track_list(entries: List[ChartEntry], title: str = "CHART", limit: int = 10) -> None:
    """Print the first `limit` chart entries."""
    print_title(title)
    for entry in entries[:limit]:
        print(f"  {entry.rank:3d}. {entry.title} - {entry.artist}")
    if len(entries) > limit:
        print(f"  ... and {len(entries) - limit} more")
    print()


def prompt_user(prompt: str, default: str = None) -> str:
    """
    Prompt user for input with optional default value.

    Returns the user's input (or default if provided and user just presses Enter).
    """
    if default:
        full_prompt = f"{prompt} [{default}]: "
    else:
        full_prompt = f"{prompt}: "

    response = input(full_prompt).strip()
    return response if response else (default or "")


def get_chart_date() -> ChartDate:
    """Ask for year, month and day until they form a valid date."""
    print(" Top 100 Song playlist creator")
    while True:
        year = prompt_user("Year")
        month = prompt_user("Month")
        day = prompt_user("Day")
        try:
            return parse_chart_date(year, month, day)
        except ValueError:
            print(f"✗ Not a valid date: {year}-{month}-{day}. Please try again.")
            print()


# ----------------------------
# Pipeline
# ----------------------------

def run_pipeline(
    date: ChartDate,
    config: PipelineConfig,
    catalog: SpotifyCatalog,
    owner: Optional[str] = None,
    show_progress: bool = False,
    on_chart: Optional[Callable[[List[ChartEntry]], None]] = None,
) -> Dict[str, Any]:
    """
    Scrape the chart, resolve every entry, and build the playlist.

    Returns a dict with the chart entries, the ResolutionResult, and the
    playlist report. Chart errors abort before any search is made, and a
    search transport error aborts before any playlist is created.
    `on_chart` is called with the entries right after scraping.
    """
    entries = chart_scraper(
        date,
        config.selectors,
        base_url=config.base_url,
        timeout=config.timeout,
    )
    if on_chart is not None:
        on_chart(entries)

    resolution: ResolutionResult = resolve_tracks(
        entries,
        date,
        catalog,
        market=config.market,
        limit=config.limit,
        policy=config.policy,
        min_confidence=config.min_confidence,
        window=config.year_window,
        show_progress=show_progress,
    )

    if owner is None:
        owner = catalog.current_user_id()

    playlist = assemble_playlist(
        resolution,
        owner,
        playlist_title(date),
        catalog,
        description=config.description,
        batch_size=config.batch_size,
    )

    return {
        "entries": entries,
        "resolution": resolution,
        "playlist": playlist,
    }


def print_summary(outcome: Dict[str, Any]) -> None:
    summary = outcome["resolution"].summary()
    playlist = outcome["playlist"]

    print()
    print_title("SUMMARY")
    print(f"Chart entries:  {summary['total']}")
    print(f"✓ Found:        {summary['resolved']}")
    print(f"⚠ Skipped:      {summary['skipped']}")
    if summary["skipped_titles"]:
        print()
        print("Not found on Spotify:")
        for title in summary["skipped_titles"]:
            print(f"  - {title}")
    print()
    print(f"✓ Playlist '{playlist['title']}' created with {playlist['track_count']} tracks")
    if playlist.get("url"):
        print(f"🔗 {playlist['url']}")
    print_separator()


def main():
    """Main entry point."""
    print_banner()
    load_dotenv()

    settings = load_settings()
    if not SETTINGS_FILE.exists():
        # First run: write the defaults so selectors can be edited when the
        # chart page markup changes.
        save_settings(settings)
        print(f"✓ Wrote default settings to {SETTINGS_FILE}")
    config = build_config(settings)

    print("Authenticating...")
    client = build_spotify_client(get_setting("spotify.cache_path", ".spotify_cache", settings=settings))
    catalog = SpotifyCatalog(client)
    owner = os.environ.get("SPOTIFY_USER_ID") or os.environ.get("USER_ID")

    date = get_chart_date()
    print()
    print(f"Top 100 song list for {date.iso()} being gathered...")

    try:
        outcome = run_pipeline(
            date,
            config,
            catalog,
            owner=owner,
            show_progress=True,
            on_chart=print_track_list,
        )
    except (FetchError, ParseError) as e:
        print(f"✗ Could not read the chart: {e}")
        sys.exit(1)
    except Chart2PlaylistError as e:
        print(f"✗ {e}")
        sys.exit(1)

    print_summary(outcome)


def cli():
    """Console entry point: main() plus Ctrl-C handling."""
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user. No playlist was created.")
        sys.exit(130)


if __name__ == "__main__":
    cli()
