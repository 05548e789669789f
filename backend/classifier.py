"""Lauren's List - Content Classifier
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Core engine: matches a title against the curated lists, queries every
source concurrently, scans the combined text and aggregates a verdict.
"""

import asyncio
import logging
from typing import Optional, Sequence

import httpx

from aggregator import aggregate
from book_sources import GoodreadsSource, GoogleBooksSource, OpenLibrarySource, StoryGraphSource
from community_sources import DoesTheDogDieSource, TriggerWarningDatabaseSource
from config import Settings
from content_db import ContentDatabase
from matching import match_curated, scan_terms
from models import Classification, InvalidInput, MediaType, MembershipFlag, SourceResult, Work
from movie_sources import IMDbListSource, TMDBSource
from sanitizer import MAX_QUERY_LENGTH
from sources import SourceAdapter, create_http_client
from wikipedia_sources import WikipediaCategorySource, WikipediaSource

logger = logging.getLogger(__name__)


def build_default_sources(settings: Settings, content_db: ContentDatabase,
                          client: Optional[httpx.AsyncClient] = None) -> list[SourceAdapter]:
    """
    Every source, sharing one HTTP client.

    Membership sources are registered in the order their flags take
    precedence: Trigger Warning Database, Wikipedia category, IMDb list,
    DoesTheDogDie.
    """
    if client is None:
        client = create_http_client(settings)
    common = {"timeout": settings.source_timeout, "retries": settings.http_retries}

    return [
        GoogleBooksSource(client, api_key=settings.google_books_api_key, **common),
        OpenLibrarySource(client, **common),
        TMDBSource(client, api_key=settings.tmdb_api_key, **common),
        GoodreadsSource(client, **common),
        StoryGraphSource(client, **common),
        WikipediaSource(client, **common),
        TriggerWarningDatabaseSource(client, **common),
        WikipediaCategorySource(client, **common),
        IMDbListSource(client, **common),
        DoesTheDogDieSource(client, api_key=settings.dtdd_api_key,
                            specific_terms=content_db.specific_terms, **common),
    ]


class ContentClassifier:
    """
    Decides whether a book or movie contains cancer / terminal illness themes.

    Sources are best-effort; the classifier always produces a verdict, even
    when every source failed. Classification.metadata_found tells callers
    whether any primary metadata source recognised the title.
    """

    def __init__(self, content_db: ContentDatabase, sources: Sequence[SourceAdapter]):
        self.content_db = content_db
        self.sources = list(sources)

    async def __aenter__(self) -> "ContentClassifier":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP clients held by the sources"""
        clients = {id(s.client): s.client for s in self.sources if getattr(s, "client", None) is not None}
        for client in clients.values():
            await client.aclose()

    def sources_for(self, media_type: MediaType) -> list[SourceAdapter]:
        return [s for s in self.sources if s.supports(media_type)]

    def _make_work(self, title, media_type, exact_match: bool) -> Work:
        if not isinstance(title, str) or not title.strip():
            raise InvalidInput("Title must not be empty")
        title = title.strip()
        if len(title) > MAX_QUERY_LENGTH:
            raise InvalidInput(f"Title must be at most {MAX_QUERY_LENGTH} characters")
        return Work(title=title, media_type=MediaType.parse(media_type), exact_match=exact_match)

    async def classify(self, title: str, media_type, exact_match: bool = False) -> Classification:
        """
        Classify one title.

        Raises InvalidInput for an empty or oversized title or an unknown media type.
        """
        work = self._make_work(title, media_type, exact_match)
        logger.info(f"🔎 Checking {work.media_type.value}: '{work.title}' (exact match: {work.exact_match})")

        curated = match_curated(work.title, self.content_db.get_curated_titles(work.media_type))
        if curated.matched:
            logger.info(f"📋 Curated list match: '{curated.matched_entry}'")

        sources = self.sources_for(work.media_type)
        results: list[SourceResult] = list(await asyncio.gather(*(s.fetch(work) for s in sources)))

        combined_text = " ".join(r.text for s, r in zip(sources, results) if r.found and not s.enrichment)
        enrichment_text = " ".join(r.text for s, r in zip(sources, results) if r.found and s.enrichment)
        terms = scan_terms(combined_text, self.content_db.terms)

        flags = [
            MembershipFlag(name=r.source_name, matched=r.found and r.member, method=s.membership_method)
            for s, r in zip(sources, results)
            if s.membership_method is not None
        ]

        # Review page text only adds terms to a work already flagged by something else
        if enrichment_text:
            if curated.matched or terms or any(f.matched for f in flags):
                terms = scan_terms(f"{combined_text} {enrichment_text}", self.content_db.terms)
            elif scan_terms(enrichment_text, self.content_db.terms):
                logger.info(f"Ignoring terms found only in review text for '{work.title}'")

        verdict = aggregate(work, curated, flags, terms)
        metadata_found = any(r.found for s, r in zip(sources, results) if s.mandatory)

        logger.info("=== Source Results ===")
        for r in results:
            status = "found" if r.found else "not found"
            extra = " (member)" if r.member else ""
            logger.info(f"  {r.source_name}: {status}{extra}")
        logger.info(
            f"{'✅' if verdict.safe else '⚠️'} Verdict for '{work.title}': safe={verdict.safe} "
            f"method={verdict.detection_method.value} confidence={verdict.confidence}"
        )

        return Classification(work=work, verdict=verdict, results=results, metadata_found=metadata_found)
