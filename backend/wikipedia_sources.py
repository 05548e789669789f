"""
Lauren's List - Wikipedia Sources
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Encyclopedia summaries for books and movies, plus membership in
Wikipedia's "Category:Films about cancer".
"""

import re
import logging
from typing import Optional
from urllib.parse import quote

from bs4 import BeautifulSoup

from models import DetectionMethod, MediaType, SourceResult, Work
from matching import normalize
from sources import SourceAdapter, join_text

logger = logging.getLogger(__name__)

WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary"
CANCER_FILMS_CATEGORY = "Category:Films about cancer"

SEARCH_LIMIT = 5
MIN_EXTRACT_LENGTH = 50     # Shorter extracts are stubs or disambiguation pages
MAX_CATEGORY_PAGES = 5      # Continuation requests for category members
CATEGORY_PAGE_SIZE = 500

BOOK_KEYWORDS = ("book", "novel", "author", "published", "literature")
FILM_KEYWORDS = ("film", "movie", "director", "actor", "cinema")

# "Bliss (1997 film)" -> "Bliss"
_FILM_DISAMBIGUATOR_RE = re.compile(r"\s*\([^)]*\bfilm\)$", re.IGNORECASE)


def strip_film_disambiguator(title: str) -> str:
    return _FILM_DISAMBIGUATOR_RE.sub("", title).strip()


def _mentions(result: dict, keywords: tuple[str, ...]) -> bool:
    title = result.get("title", "").lower()
    snippet = BeautifulSoup(result.get("snippet", ""), "html.parser").get_text().lower()
    return any(k in title or k in snippet for k in keywords)


class WikipediaSource(SourceAdapter):
    """Summary extract of the best matching article."""

    name = "Wikipedia"

    async def _search(self, query: str) -> list[dict]:
        data = await self._get_json(WIKIPEDIA_API_URL, params={
            "action": "query",
            "format": "json",
            "list": "search",
            "srsearch": query,
            "srlimit": SEARCH_LIMIT,
        })
        return (data.get("query") or {}).get("search") or []

    async def _summary(self, page_title: str) -> Optional[dict]:
        try:
            data = await self._get_json(f"{WIKIPEDIA_SUMMARY_URL}/{quote(page_title, safe='')}")
        except Exception as e:
            logger.info(f"Wikipedia: summary failed for '{page_title}': {e!r}")
            return None
        if len(data.get("extract") or "") > MIN_EXTRACT_LENGTH:
            return data
        return None

    def _book_candidates(self, work: Work, results: list[dict]) -> list[dict]:
        query = work.title.lower()
        # First pass: explicit book articles; second pass: non-film articles named like the query
        explicit = [r for r in results if _mentions(r, BOOK_KEYWORDS) and not _mentions(r, FILM_KEYWORDS)]
        named = [
            r for r in results
            if not _mentions(r, FILM_KEYWORDS)
            and (r.get("title", "").lower() in query or query in r.get("title", "").lower())
        ]
        return explicit + [r for r in named if r not in explicit]

    async def _find_book(self, work: Work) -> Optional[dict]:
        query = f'"{work.title}"' if work.exact_match else work.title
        for result in self._book_candidates(work, await self._search(query)):
            summary = await self._summary(result["title"])
            if summary:
                return summary
        return None

    async def _find_movie(self, work: Work) -> Optional[dict]:
        queries = [f"{work.title} (film)", f"{work.title} film", work.title]
        for query in queries:
            for result in await self._search(query):
                if not _mentions(result, FILM_KEYWORDS):
                    continue
                summary = await self._summary(result["title"])
                if summary:
                    return summary
        return None

    async def fetch_text(self, work: Work) -> SourceResult:
        if work.media_type == MediaType.BOOK:
            summary = await self._find_book(work)
        else:
            summary = await self._find_movie(work)

        if not summary:
            return SourceResult.not_found(self.name)

        title = summary.get("title", "")
        text = join_text(title, summary.get("description"), summary.get("extract"))
        return self._result(text, title=title)


class WikipediaCategorySource(SourceAdapter):
    """Membership in Category:Films about cancer (exact title after normalization)."""

    name = "Wikipedia Category"
    media_types = (MediaType.MOVIE,)
    membership_method = DetectionMethod.CATEGORY_LIST

    async def _category_titles(self) -> list[str]:
        params = {
            "action": "query",
            "format": "json",
            "list": "categorymembers",
            "cmtitle": CANCER_FILMS_CATEGORY,
            "cmtype": "page",
            "cmlimit": CATEGORY_PAGE_SIZE,
        }
        titles = []
        for _ in range(MAX_CATEGORY_PAGES):
            data = await self._get_json(WIKIPEDIA_API_URL, params=params)
            members = (data.get("query") or {}).get("categorymembers") or []
            titles.extend(m.get("title", "") for m in members)
            cont = data.get("continue") or {}
            if not cont.get("cmcontinue"):
                break
            params = {**params, "cmcontinue": cont["cmcontinue"]}
        return titles

    async def fetch_text(self, work: Work) -> SourceResult:
        query = normalize(work.title)
        for page_title in await self._category_titles():
            film = strip_film_disambiguator(page_title)
            if film and normalize(film) == query:
                logger.info(f"Wikipedia Category: '{page_title}' is in {CANCER_FILMS_CATEGORY}")
                return self._result(page_title, title=film, member=True)
        return SourceResult.not_found(self.name)
