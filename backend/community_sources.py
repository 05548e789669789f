"""
Lauren's List - Community Trigger Sources
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Crowd-sourced content warnings: DoesTheDogDie topic votes and the
Trigger Warning Database list of terminal-illness books. Both report
list membership in addition to free text.
"""

import logging
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from models import DetectionMethod, MediaType, SourceResult, SourceUnavailable, Work
from matching import best_fuzzy_match
from sources import SourceAdapter, join_text

logger = logging.getLogger(__name__)

DTDD_API_URL = "https://www.doesthedogdie.com"
TRIGGER_WARNING_DB_URL = "https://triggerwarningdatabase.com/terminal-illnesses/"

# DoesTheDogDie item type names per media type
DTDD_ITEM_TYPES = {MediaType.BOOK: "book", MediaType.MOVIE: "movie"}


class DoesTheDogDieSource(SourceAdapter):
    """
    Looks a title up on DoesTheDogDie and collects the topics the community
    voted as present (yes votes outnumber no votes). The work is a member
    when its overview or a present topic names a cancer-specific term.
    """

    name = "DoesTheDogDie"
    membership_method = DetectionMethod.TRIGGER_DATABASE

    def __init__(self, client, api_key: Optional[str] = None,
                 specific_terms: Iterable[str] = (), **kwargs):
        super().__init__(client, **kwargs)
        self.api_key = api_key
        self.specific_terms = tuple(t.lower() for t in specific_terms)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def _headers(self) -> dict:
        return {"Accept": "application/json", "X-API-KEY": self.api_key}

    def _pick_item(self, items: list[dict], media_type: MediaType) -> dict:
        wanted = DTDD_ITEM_TYPES[media_type]
        for item in items:
            item_type = item.get("itemType") or {}
            if str(item_type.get("name", "")).lower() == wanted:
                return item
        return items[0]

    def _present_topics(self, media: dict) -> list[str]:
        topics = []
        for stat in media.get("topicItemStats") or []:
            topic = stat.get("topic") or {}
            name = topic.get("doesName") or topic.get("name") or ""
            if name and stat.get("yesSum", 0) > stat.get("noSum", 0):
                topics.append(name)
        return topics

    def _is_member(self, texts: list[str]) -> bool:
        """True when the overview or a present topic names a cancer-specific term."""
        return any(term in text.lower() for text in texts if text for term in self.specific_terms)

    async def fetch_text(self, work: Work) -> SourceResult:
        if not self.api_key:
            raise SourceUnavailable("DOESTHEDOGDIE_API_KEY not set")

        query = f'"{work.title}"' if work.exact_match else work.title
        data = await self._get_json(f"{DTDD_API_URL}/dddsearch", params={"q": query}, headers=self._headers)
        items = data.get("items") or []
        if not items:
            return SourceResult.not_found(self.name)

        item = self._pick_item(items, work.media_type)
        title = item.get("name", "")
        if work.exact_match and title.lower().strip() != work.title.lower().strip():
            return SourceResult.not_found(self.name)

        topics = []
        if item.get("id") is not None:
            try:
                media = await self._get_json(f"{DTDD_API_URL}/media/{item['id']}", headers=self._headers)
                topics = self._present_topics(media)
            except Exception as e:
                logger.info(f"DoesTheDogDie: topic lookup failed for {item['id']}: {e!r}")

        member = self._is_member([item.get("overview") or "", *topics])
        if member:
            logger.info(f"DoesTheDogDie: '{title}' has cancer-related content")

        text = join_text(title, item.get("overview"), item.get("genre"), topics)
        return self._result(text, title=title, member=member)


def parse_trigger_entries(html: str) -> list[tuple[str, str]]:
    """Extract (title, author) pairs from entries shaped like "<b>Title</b> by Author"."""
    soup = BeautifulSoup(html, "html.parser")
    entries = []

    for element in soup.find_all(["li", "p"]):
        text = element.get_text(" ", strip=True)
        bold = element.find(["strong", "b"])
        if " by " not in text and bold is None:
            continue

        title = bold.get_text(" ", strip=True) if bold else ""
        author = ""
        by_index = text.find(" by ")
        if by_index != -1:
            if not title:
                title = text[:by_index].replace("*", "").strip()
            author = text[by_index + 4:].strip()

        if title:
            entries.append((title, author))

    return entries


class TriggerWarningDatabaseSource(SourceAdapter):
    name = "Trigger Warning Database"
    media_types = (MediaType.BOOK,)
    membership_method = DetectionMethod.TRIGGER_DATABASE

    def _find_entry(self, work: Work, entries: list[tuple[str, str]]) -> Optional[tuple[str, str]]:
        query = work.title.lower().strip()

        for title, author in entries:
            candidate = title.lower().strip()
            if work.exact_match:
                if candidate == query:
                    return title, author
            elif candidate and (candidate in query or query in candidate):
                return title, author

        if work.exact_match:
            return None

        best = best_fuzzy_match(query, [title for title, _ in entries])
        if best is None:
            return None
        logger.info(f"Trigger Warning Database: fuzzy match '{best}' for '{work.title}'")
        return next(entry for entry in entries if entry[0] == best)

    async def fetch_text(self, work: Work) -> SourceResult:
        html = await self._get_html(TRIGGER_WARNING_DB_URL)
        entries = parse_trigger_entries(html)
        if not entries:
            raise SourceUnavailable("no entries found on the terminal illnesses page")

        match = self._find_entry(work, entries)
        if match is None:
            return SourceResult.not_found(self.name)

        title, author = match
        text = join_text(title, f"by {author}" if author else "")
        return self._result(text, title=title, member=True)
