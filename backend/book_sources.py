"""
Lauren's List - Book Sources
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Bibliographic metadata (Google Books, Open Library) and community
review sites (Goodreads, StoryGraph).
"""

import logging
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from models import MediaType, SourceResult, Work
from sources import SourceAdapter, join_text

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
OPEN_LIBRARY_URL = "https://openlibrary.org"
GOODREADS_URL = "https://www.goodreads.com"
STORYGRAPH_URL = "https://app.thestorygraph.com"

MAX_PAGE_TEXT_LENGTH = 50000   # Raw Goodreads page text kept, spoilers included
MAX_REVIEW_TEXT_LENGTH = 5000  # Review snippets kept from Goodreads
MAX_REVIEWS = 10


def _exact_title_ok(work: Work, found_title: str) -> bool:
    """In exact-match mode the resolved title must equal the query."""
    if not work.exact_match:
        return True
    return (found_title or "").lower().strip() == work.title.lower().strip()


class GoogleBooksSource(SourceAdapter):
    name = "Google Books"
    media_types = (MediaType.BOOK,)
    mandatory = True

    def __init__(self, client, api_key: Optional[str] = None, **kwargs):
        super().__init__(client, **kwargs)
        self.api_key = api_key

    def _params(self, **params) -> dict:
        if self.api_key:
            params["key"] = self.api_key
        return params

    async def fetch_text(self, work: Work) -> SourceResult:
        data = await self._get_json(GOOGLE_BOOKS_URL, params=self._params(q=f'intitle:"{work.title}"'))
        items = data.get("items") or []

        if not items and not work.exact_match:
            logger.info(f"Google Books: no exact title match for '{work.title}', trying general search")
            data = await self._get_json(GOOGLE_BOOKS_URL, params=self._params(q=work.title))
            items = data.get("items") or []

        if not items:
            return SourceResult.not_found(self.name)

        item = items[0]
        info = item.get("volumeInfo") or {}
        title = info.get("title", "")
        if not _exact_title_ok(work, title):
            logger.info(f"Google Books: '{title}' is not an exact match for '{work.title}'")
            return SourceResult.not_found(self.name)

        description = info.get("description", "")
        subtitle = info.get("subtitle", "")
        if item.get("id"):
            # The search listing often truncates the description
            try:
                detail = await self._get_json(f"{GOOGLE_BOOKS_URL}/{item['id']}", params=self._params())
                detail_info = detail.get("volumeInfo") or {}
                description = detail_info.get("description") or description
                subtitle = detail_info.get("subtitle") or subtitle
            except Exception as e:
                logger.info(f"Google Books: detail lookup failed for {item['id']}: {e!r}")

        text = join_text(title, subtitle, info.get("authors"), description, info.get("categories"))
        return self._result(text, title=title)


class OpenLibrarySource(SourceAdapter):
    name = "Open Library"
    media_types = (MediaType.BOOK,)
    mandatory = True

    async def fetch_text(self, work: Work) -> SourceResult:
        query = f'title:"{work.title}"' if work.exact_match else work.title
        data = await self._get_json(f"{OPEN_LIBRARY_URL}/search.json", params={"q": query, "limit": 1})
        docs = data.get("docs") or []
        if not docs:
            return SourceResult.not_found(self.name)

        book = docs[0]
        title = book.get("title", "")
        if not _exact_title_ok(work, title):
            return SourceResult.not_found(self.name)

        description = ""
        subtitle = ""
        if book.get("key"):
            try:
                work_data = await self._get_json(f"{OPEN_LIBRARY_URL}{book['key']}.json")
                description = work_data.get("description") or ""
                # Work descriptions come either as a string or {"type": ..., "value": ...}
                if isinstance(description, dict):
                    description = description.get("value", "")
                subtitle = work_data.get("subtitle") or ""
            except Exception as e:
                logger.info(f"Open Library: work lookup failed for {book['key']}: {e!r}")

        text = join_text(title, subtitle, book.get("author_name"), description, book.get("subject"))
        return self._result(text, title=title)


class GoodreadsSource(SourceAdapter):
    """
    Scrapes the first Goodreads search hit.

    Besides the description and reviews, the raw page text is kept (up to
    MAX_PAGE_TEXT_LENGTH characters) so spoiler-hidden review text is scanned too.
    The text is enrichment: its terms count only when another signal fired.
    """

    name = "Goodreads"
    media_types = (MediaType.BOOK,)
    enrichment = True

    def _pick_book_link(self, soup: BeautifulSoup, title: str):
        links = soup.select('a[href*="/book/show/"]')
        if not links:
            return None
        query = title.lower()
        slug = query.replace(" ", "_")
        for link in links:
            href = (link.get("href") or "").lower()
            text = link.get_text(" ", strip=True).lower()
            if query in text or query in href or slug in href:
                return link
        return links[0]

    async def fetch_text(self, work: Work) -> SourceResult:
        query = f'"{work.title}"' if work.exact_match else work.title
        html = await self._get_html(f"{GOODREADS_URL}/search", params={"q": query, "search_type": "books"})
        soup = BeautifulSoup(html, "html.parser")

        link = self._pick_book_link(soup, work.title)
        if link is None:
            return SourceResult.not_found(self.name)

        page = await self._get_html(urljoin(GOODREADS_URL, link.get("href")))
        book = BeautifulSoup(page, "html.parser")

        title_elem = book.select_one('h1[data-testid="bookTitle"], h1#bookTitle, h1')
        title = title_elem.get_text(" ", strip=True) if title_elem else link.get_text(" ", strip=True)
        if not _exact_title_ok(work, title):
            return SourceResult.not_found(self.name)

        desc_elem = book.select_one('[data-testid="description"], #description, .BookPageMetadataSection__description')
        description = desc_elem.get_text(" ", strip=True) if desc_elem else ""

        reviews = [
            el.get_text(" ", strip=True)
            for el in book.select('.ReviewText, .reviewText, [class*="ReviewText"]')[:MAX_REVIEWS]
        ]
        review_text = " ".join(reviews)[:MAX_REVIEW_TEXT_LENGTH]

        for tag in book(["script", "style", "noscript"]):
            tag.decompose()
        page_text = book.get_text(" ", strip=True)[:MAX_PAGE_TEXT_LENGTH]

        text = join_text(title, description, review_text, page_text)
        return self._result(text, title=title)


class StoryGraphSource(SourceAdapter):
    name = "StoryGraph"
    media_types = (MediaType.BOOK,)

    async def fetch_text(self, work: Work) -> SourceResult:
        query = f'"{work.title}"' if work.exact_match else work.title
        html = await self._get_html(f"{STORYGRAPH_URL}/search", params={"q": query})
        soup = BeautifulSoup(html, "html.parser")

        link = None
        for candidate in soup.select('a[href*="/books/"]'):
            href = candidate.get("href") or ""
            if "/content_warning" not in href and "/reviews" not in href:
                link = candidate
                break
        if link is None:
            return SourceResult.not_found(self.name)

        href = link.get("href")
        title = link.get_text(" ", strip=True) or href.rstrip("/").split("/")[-1].replace("-", " ")
        if not _exact_title_ok(work, title):
            return SourceResult.not_found(self.name)

        warnings_html = await self._get_html(urljoin(STORYGRAPH_URL, href.rstrip("/") + "/content_warnings"))
        warnings_soup = BeautifulSoup(warnings_html, "html.parser")
        warnings = []
        for elem in warnings_soup.select('[class*="warning"], [class*="trigger"]'):
            text = elem.get_text(" ", strip=True)
            if text and text not in warnings:
                warnings.append(text)

        return self._result(join_text(title, ", ".join(warnings)), title=title)
