from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from datetime import date as _date
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from errors import FetchError, ParseError


CHART_BASE_URL = "https://www.billboard.com/charts/hot-100"

# Forces the chart page to render all 100 positions.
FULL_LIST_QUERY = "rank=1"

HEADERS = {
    # Polite UA helps avoid basic blocks.
    "User-Agent": "chart2playlist/1.0 (+https://github.com/chart2playlist)"
}


@dataclass(frozen=True)
class ChartDate:
    year: int
    month: str
    day: str

    def iso(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"


@dataclass(frozen=True)
class ChartEntry:
    rank: int
    title: str
    artist: str


@dataclass(frozen=True)
class SelectorConfig:
    """
    CSS selectors describing where titles and artists live on the chart page.

    If `row_selector` is set, each row container is selected first and the
    title/artist selectors are applied inside it. Otherwise titles and artists
    are selected over the whole page and paired by position.
    """
    title_selector: str
    artist_selector: str
    row_selector: str = ""


def parse_chart_date(year: str | int, month: str | int, day: str | int) -> ChartDate:
    """
    Validate user input as a calendar date and normalize it.

    Month and day are zero-padded so the chart URL always reads YYYY-MM-DD.
    Raises ValueError for anything that is not a real date.
    """
    y = int(str(year).strip())
    m = int(str(month).strip())
    d = int(str(day).strip())
    _date(y, m, d)
    return ChartDate(year=y, month=f"{m:02d}", day=f"{d:02d}")


def chart_url(date: ChartDate, base_url: str = CHART_BASE_URL) -> str:
    """Chart page URL for a date, e.g. .../hot-100/1985-07-13?rank=1"""
    return f"{base_url.rstrip('/')}/{date.iso()}?{FULL_LIST_QUERY}"


def _txt(el) -> Optional[str]:
    """Safe text extractor with stripping."""
    if el is None:
        return None
    # Child tags (<b>, <i>, links) must not split a title into extra words.
    s = " ".join(el.get_text().split())
    return s or None


def _fetch(url: str, timeout: int, session: Optional[requests.Session]) -> str:
    getter = session.get if session is not None else requests.get
    try:
        resp = getter(url, headers=HEADERS, timeout=timeout)
        resp.raise_for_status()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise FetchError(url, str(e), status=status) from e
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e
    return resp.text


def _pair_by_position(soup: BeautifulSoup, config: SelectorConfig) -> List[ChartEntry]:
    titles = soup.select(config.title_selector)
    artists = soup.select(config.artist_selector)

    if not titles:
        raise ParseError(f"Title selector matched nothing: {config.title_selector!r}")
    if not artists:
        raise ParseError(f"Artist selector matched nothing: {config.artist_selector!r}")

    # zip() stops at the shorter list; a page with an extra title-only or
    # artist-only node misaligns everything after it.
    entries: List[ChartEntry] = []
    for rank, (title_el, artist_el) in enumerate(zip(titles, artists), start=1):
        title = _txt(title_el)
        artist = _txt(artist_el)
        if title and artist:
            entries.append(ChartEntry(rank=rank, title=title, artist=artist))
    return entries


def _pair_by_row(soup: BeautifulSoup, config: SelectorConfig) -> List[ChartEntry]:
    rows = soup.select(config.row_selector)
    if not rows:
        raise ParseError(f"Row selector matched nothing: {config.row_selector!r}")

    entries: List[ChartEntry] = []
    for rank, row in enumerate(rows, start=1):
        title = _txt(row.select_one(config.title_selector))
        artist = _txt(row.select_one(config.artist_selector))
        if title and artist:
            entries.append(ChartEntry(rank=rank, title=title, artist=artist))
    return entries


def parse_chart(html: str, config: SelectorConfig) -> List[ChartEntry]:
    """
    Parse chart markup into ranked entries.

    Entries with an empty title or artist are dropped; ranks keep the
    position the row had on the page.
    """
    soup = BeautifulSoup(html, "html.parser")

    if config.row_selector:
        entries = _pair_by_row(soup, config)
    else:
        entries = _pair_by_position(soup, config)

    if not entries:
        raise ParseError("Chart markup produced no (title, artist) pairs")
    return entries


def chart_scraper(
    date: ChartDate,
    config: SelectorConfig,
    base_url: str = CHART_BASE_URL,
    timeout: int = 30,
    session: Optional[requests.Session] = None,
) -> List[ChartEntry]:
    """
    Fetch the chart page for `date` and return its entries in chart order.

    Raises FetchError when the page cannot be fetched (no retry here) and
    ParseError when the selectors find nothing.
    """
    url = chart_url(date, base_url)
    html = _fetch(url, timeout, session)
    return parse_chart(html, config)


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print("usage: scraper.py TITLE_SELECTOR ARTIST_SELECTOR YYYY-MM-DD")
        sys.exit(2)
    y, m, d = sys.argv[3].split("-")
    result = chart_scraper(
        parse_chart_date(y, m, d),
        SelectorConfig(title_selector=sys.argv[1], artist_selector=sys.argv[2]),
    )
    print(json.dumps([e.__dict__ for e in result], indent=2, ensure_ascii=False))
