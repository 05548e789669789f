"""
Tests for the classification pipeline, using in-memory sources.
"""

import asyncio
import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from classifier import ContentClassifier, build_default_sources
from config import Settings
from content_db import ContentDatabase
from models import DetectionMethod, InvalidInput, MediaType, SourceResult
from sources import SourceAdapter


class FakeSource(SourceAdapter):
    def __init__(self, name, text="", found=True, member=False, media_types=None,
                 mandatory=False, membership_method=None, client=None):
        super().__init__(client)
        self.name = name
        self.text = text
        self.found = found
        self.member = member
        self.mandatory = mandatory
        self.membership_method = membership_method
        if media_types is not None:
            self.media_types = media_types
        self.calls = 0

    async def fetch_text(self, work):
        self.calls += 1
        if not self.found:
            return SourceResult.not_found(self.name)
        return self._result(self.text, title=work.title, member=self.member)


class FailingSource(FakeSource):
    async def fetch_text(self, work):
        raise RuntimeError("boom")


@pytest.fixture
def small_db(tmp_path):
    (tmp_path / "known_titles.json").write_text(json.dumps({
        "books": ["the fault in our stars"],
        "movies": ["the bucket list"],
    }))
    (tmp_path / "terms.json").write_text(json.dumps({
        "terms": ["cancer", "chemotherapy", "hospice"],
        "specific_terms": ["cancer", "chemotherapy"],
    }))
    return ContentDatabase(db_path=str(tmp_path))


def metadata(text, found=True):
    return FakeSource("Metadata", text=text, found=found, mandatory=True)


class TestVerdicts:
    @pytest.mark.asyncio
    async def test_curated_book(self, content_db):
        classifier = ContentClassifier(content_db, [metadata("A love story.")])
        result = await classifier.classify("The Fault in Our Stars", "book")

        assert result.verdict.safe is False
        assert result.verdict.detection_method == DetectionMethod.KNOWN_LIST
        assert result.verdict.confidence == 0.95
        assert result.verdict.matched_terms == ()
        assert result.metadata_found is True

    @pytest.mark.asyncio
    async def test_curated_partial_title(self, content_db):
        classifier = ContentClassifier(content_db, [])
        result = await classifier.classify("Ove", MediaType.BOOK)
        assert result.verdict.detection_method == DetectionMethod.KNOWN_LIST

    @pytest.mark.asyncio
    async def test_unrelated_book_is_safe(self, content_db):
        classifier = ContentClassifier(content_db, [metadata("Desert planet politics and spice.")])
        result = await classifier.classify("Dune", "book")

        assert result.verdict.safe is True
        assert result.verdict.confidence == 0.9
        assert result.verdict.detection_method == DetectionMethod.NONE
        assert result.metadata_found is True

    @pytest.mark.asyncio
    async def test_term_scan(self, small_db):
        sources = [
            metadata("Two friends on a road trip."),
            FakeSource("Reviews", text="The chemotherapy scenes hit hard. Later, hospice."),
        ]
        result = await ContentClassifier(small_db, sources).classify("Road Trip", "movie")

        assert result.verdict.safe is False
        assert result.verdict.detection_method == DetectionMethod.TERM_SCAN
        assert result.verdict.confidence == 0.8
        assert result.verdict.matched_terms == ("chemotherapy", "hospice")

    @pytest.mark.asyncio
    async def test_review_text_alone_does_not_flag(self, small_db):
        reviews = FakeSource("Goodreads", text="my aunt had cancer, this book helped")
        reviews.enrichment = True
        sources = [metadata("A desert planet saga with political intrigue."), reviews]

        result = await ContentClassifier(small_db, sources).classify("Dune", "book")

        assert result.verdict.safe is True
        assert result.verdict.detection_method == DetectionMethod.NONE
        assert result.verdict.matched_terms == ()

    @pytest.mark.asyncio
    async def test_review_text_adds_terms_once_flagged(self, small_db):
        reviews = FakeSource("Goodreads", text="the hospice chapters wrecked me")
        reviews.enrichment = True
        sources = [metadata("Her chemotherapy begins in chapter two."), reviews]

        result = await ContentClassifier(small_db, sources).classify("Dune", "book")

        assert result.verdict.detection_method == DetectionMethod.TERM_SCAN
        assert result.verdict.matched_terms == ("chemotherapy", "hospice")

    @pytest.mark.asyncio
    async def test_review_text_terms_kept_for_curated_match(self, small_db):
        reviews = FakeSource("Goodreads", text="so much cancer")
        reviews.enrichment = True

        result = await ContentClassifier(small_db, [reviews]).classify("The Fault in Our Stars", "book")

        assert result.verdict.detection_method == DetectionMethod.KNOWN_LIST
        assert result.verdict.matched_terms == ("cancer",)

    @pytest.mark.asyncio
    async def test_text_of_not_found_sources_is_ignored(self, small_db):
        sources = [metadata("cancer", found=False)]
        result = await ContentClassifier(small_db, sources).classify("Road Trip", "movie")
        assert result.verdict.safe is True
        assert result.metadata_found is False

    @pytest.mark.asyncio
    async def test_all_sources_fail(self, small_db):
        sources = [FailingSource("A", mandatory=True), FailingSource("B")]
        result = await ContentClassifier(small_db, sources).classify("Road Trip", "movie")

        assert result.verdict.safe is True
        assert result.verdict.detection_method == DetectionMethod.NONE
        assert result.metadata_found is False
        assert [r.found for r in result.results] == [False, False]

    @pytest.mark.asyncio
    async def test_membership_beats_terms(self, small_db):
        sources = [
            metadata("Mentions cancer."),
            FakeSource("Category", text="Road Trip", member=True,
                       membership_method=DetectionMethod.CATEGORY_LIST),
        ]
        result = await ContentClassifier(small_db, sources).classify("Road Trip", "movie")

        assert result.verdict.detection_method == DetectionMethod.CATEGORY_LIST
        assert result.verdict.confidence == 0.95
        assert result.verdict.matched_terms == ("cancer",)

    @pytest.mark.asyncio
    async def test_membership_follows_source_order(self, small_db):
        sources = [
            FakeSource("Trigger DB", member=True, membership_method=DetectionMethod.TRIGGER_DATABASE),
            FakeSource("Category", member=True, membership_method=DetectionMethod.CATEGORY_LIST),
        ]
        result = await ContentClassifier(small_db, sources).classify("Road Trip", "movie")
        assert result.verdict.detection_method == DetectionMethod.TRIGGER_DATABASE
        assert "Trigger DB" in result.verdict.rationale

    @pytest.mark.asyncio
    async def test_found_without_member_is_no_flag(self, small_db):
        sources = [FakeSource("Category", text="Road Trip", member=False,
                              membership_method=DetectionMethod.CATEGORY_LIST)]
        result = await ContentClassifier(small_db, sources).classify("Road Trip", "movie")
        assert result.verdict.safe is True

    @pytest.mark.asyncio
    async def test_curated_beats_membership(self, small_db):
        sources = [FakeSource("Category", member=True, membership_method=DetectionMethod.CATEGORY_LIST)]
        result = await ContentClassifier(small_db, sources).classify("The Bucket List", "movie")
        assert result.verdict.detection_method == DetectionMethod.KNOWN_LIST


class TestSourceSelection:
    @pytest.mark.asyncio
    async def test_only_supporting_sources_run(self, small_db):
        book_only = FakeSource("Books", text="cancer", media_types=(MediaType.BOOK,))
        movie_only = FakeSource("Movies", text="nothing here", media_types=(MediaType.MOVIE,))
        classifier = ContentClassifier(small_db, [book_only, movie_only])

        result = await classifier.classify("Road Trip", "movie")

        assert book_only.calls == 0
        assert movie_only.calls == 1
        assert [r.source_name for r in result.results] == ["Movies"]
        assert result.verdict.safe is True

    @pytest.mark.asyncio
    async def test_sources_run_concurrently(self, small_db):
        started = asyncio.Event()

        class Waiter(FakeSource):
            async def fetch_text(self, work):
                await started.wait()
                return self._result("waited")

        class Starter(FakeSource):
            async def fetch_text(self, work):
                started.set()
                return self._result("started")

        sources = [Waiter("Waiter", mandatory=True), Starter("Starter")]
        result = await asyncio.wait_for(
            ContentClassifier(small_db, sources).classify("Road Trip", "movie"), timeout=2
        )
        assert [r.found for r in result.results] == [True, True]

    @pytest.mark.asyncio
    async def test_slow_source_does_not_block_verdict(self, small_db):
        class Slow(FakeSource):
            async def fetch_text(self, work):
                await asyncio.sleep(10)
                return self._result("cancer")

        slow = Slow("Slow")
        slow.timeout = 0.05
        result = await ContentClassifier(small_db, [slow, metadata("fine")]).classify("Road Trip", "movie")
        assert result.verdict.safe is True
        assert result.metadata_found is True


class TestInputValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", ["", "   ", None])
    async def test_empty_title(self, small_db, title):
        with pytest.raises(InvalidInput):
            await ContentClassifier(small_db, []).classify(title, "book")

    @pytest.mark.asyncio
    async def test_oversized_title(self, small_db):
        with pytest.raises(InvalidInput):
            await ContentClassifier(small_db, []).classify("x" * 201, "book")

    @pytest.mark.asyncio
    async def test_unknown_media_type(self, small_db):
        with pytest.raises(InvalidInput):
            await ContentClassifier(small_db, []).classify("Dune", "podcast")

    @pytest.mark.asyncio
    async def test_exact_match_passed_to_sources(self, small_db):
        seen = []

        class Recorder(FakeSource):
            async def fetch_text(self, work):
                seen.append(work)
                return self._result("")

        await ContentClassifier(small_db, [Recorder("R")]).classify("  Dune  ", "BOOK", exact_match=True)
        assert seen[0].title == "Dune"
        assert seen[0].media_type == MediaType.BOOK
        assert seen[0].exact_match is True


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_shared_client_once(self, small_db):
        client = MagicMock()
        client.aclose = AsyncMock()
        sources = [FakeSource("A", client=client), FakeSource("B", client=client), FakeSource("C")]

        async with ContentClassifier(small_db, sources):
            pass

        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_default_sources(self, small_db):
        client = MagicMock()
        settings = Settings(source_timeout=7.0, http_retries=2)
        sources = build_default_sources(settings, small_db, client=client)

        names = [s.name for s in sources]
        assert names == [
            "Google Books", "Open Library", "TMDB", "Goodreads", "StoryGraph", "Wikipedia",
            "Trigger Warning Database", "Wikipedia Category", "IMDb Cancer List", "DoesTheDogDie",
        ]
        assert all(s.client is client for s in sources)
        assert all(s.timeout == 7.0 and s.retries == 2 for s in sources)
        assert [s.name for s in sources if s.mandatory] == ["Google Books", "Open Library", "TMDB"]
        assert [s.name for s in sources if s.enrichment] == ["Goodreads"]
        assert sources[-1].specific_terms == ("cancer", "chemotherapy")
