"""
Lauren's List - Movie Sources
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Movie metadata from TMDB and membership in IMDb's "Movies about Cancer" list.

Data provided by TMDB
https://www.themoviedb.org
"""

import re
import logging
from typing import Optional

from bs4 import BeautifulSoup

from models import DetectionMethod, MediaType, SourceResult, SourceUnavailable, Work
from matching import normalize
from sources import SourceAdapter, join_text

logger = logging.getLogger(__name__)

TMDB_API_URL = "https://api.themoviedb.org/3"
IMDB_CANCER_LIST_URL = "https://www.imdb.com/list/ls004695995/"

_RANK_PREFIX_RE = re.compile(r"^\d+\.\s*")
_YEAR_SUFFIX_RE = re.compile(r"\s*\(\d{4}\)\s*$")


class TMDBSource(SourceAdapter):
    """Movie metadata: title, overview and genres of the first search hit."""

    name = "TMDB"
    media_types = (MediaType.MOVIE,)
    mandatory = True

    def __init__(self, client, api_key: Optional[str] = None, **kwargs):
        super().__init__(client, **kwargs)
        self.api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_text(self, work: Work) -> SourceResult:
        if not self.api_key:
            raise SourceUnavailable("TMDB_API_KEY not set")

        data = await self._get_json(
            f"{TMDB_API_URL}/search/movie",
            params={"api_key": self.api_key, "query": work.title},
        )
        results = data.get("results") or []
        if not results:
            return SourceResult.not_found(self.name)

        movie = results[0]
        title = movie.get("title", "")
        if work.exact_match and title.lower().strip() != work.title.lower().strip():
            logger.info(f"TMDB: '{title}' is not an exact match for '{work.title}'")
            return SourceResult.not_found(self.name)

        overview = movie.get("overview", "")
        tagline = ""
        genres = []
        if movie.get("id") is not None:
            try:
                details = await self._get_json(
                    f"{TMDB_API_URL}/movie/{movie['id']}",
                    params={"api_key": self.api_key},
                )
                overview = details.get("overview") or overview
                genres = [g.get("name", "") for g in details.get("genres") or []]
                tagline = details.get("tagline", "")
            except Exception as e:
                logger.info(f"TMDB: details lookup failed for {movie['id']}: {e!r}")

        return self._result(join_text(title, tagline, overview, genres), title=title)


def parse_imdb_list_titles(html: str) -> list[str]:
    """Film titles from an IMDb list page, without ranking numbers or years."""
    soup = BeautifulSoup(html, "html.parser")
    titles = []
    for elem in soup.select("h3.ipc-title__text, .lister-item-header a, h3"):
        text = elem.get_text(" ", strip=True)
        text = _RANK_PREFIX_RE.sub("", text)
        text = _YEAR_SUFFIX_RE.sub("", text).strip()
        if text and text not in titles:
            titles.append(text)
    return titles


class IMDbListSource(SourceAdapter):
    """Membership in IMDb's "Movies about Cancer" user list."""

    name = "IMDb Cancer List"
    media_types = (MediaType.MOVIE,)
    membership_method = DetectionMethod.CATEGORY_LIST

    async def fetch_text(self, work: Work) -> SourceResult:
        html = await self._get_html(IMDB_CANCER_LIST_URL, headers={"Accept-Language": "en-US,en;q=0.9"})
        titles = parse_imdb_list_titles(html)
        if not titles:
            raise SourceUnavailable("no titles found on the list page")

        query = normalize(work.title)
        if not query:
            return SourceResult.not_found(self.name)
        # Partial titles count; exact mode needs the whole title
        for title in titles:
            listed = normalize(title)
            if listed == query or (not work.exact_match and query in listed):
                logger.info(f"IMDb Cancer List: '{title}' is on the list")
                return self._result(title, title=title, member=True)
        return SourceResult.not_found(self.name)
