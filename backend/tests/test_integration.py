import pytest
from unittest.mock import patch, AsyncMock
from httpx import AsyncClient, ASGITransport

import main
from main import app
from models import (
    Classification, DetectionMethod, MediaType, SourceResult, Verdict, Work,
)
from sources import SourceAdapter


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def make_classification(title="Dune", media_type=MediaType.BOOK, safe=True, terms=(),
                        method=DetectionMethod.NONE, metadata_found=True, results=None):
    verdict = Verdict(
        safe=safe,
        confidence=0.9 if safe else 0.8,
        matched_terms=tuple(terms),
        detection_method=method,
        rationale="No cancer-related content detected." if safe else "Cancer-related content detected.",
    )
    if results is None:
        results = [SourceResult(source_name="Google Books", text="x", found=True)]
    return Classification(
        work=Work(title=title, media_type=media_type),
        verdict=verdict,
        results=results,
        metadata_found=metadata_found,
    )


class MetadataSource(SourceAdapter):
    name = "Metadata"
    mandatory = True

    def __init__(self, text):
        super().__init__(client=None)
        self.text = text

    async def fetch_text(self, work):
        return self._result(self.text, title=work.title)


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == main.API_VERSION

    @pytest.mark.asyncio
    async def test_health_has_security_headers(self, client):
        response = await client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"

    @pytest.mark.asyncio
    async def test_unknown_origin_not_allowed(self, client):
        response = await client.get("/health", headers={"Origin": "http://evil.test"})
        assert "access-control-allow-origin" not in response.headers


class TestSearchEndpoint:
    @pytest.mark.asyncio
    async def test_search_response_shape(self, client):
        classification = make_classification(
            title="The Bucket List", media_type=MediaType.MOVIE, safe=False,
            terms=["cancer"], method=DetectionMethod.TERM_SCAN,
        )
        with patch.object(main.classifier, "classify", new_callable=AsyncMock,
                          return_value=classification) as mock_classify:
            response = await client.post("/search", json={"title": "The Bucket List", "mediaType": "movie"})

        assert response.status_code == 200
        data = response.json()
        assert data["safe"] is False
        assert data["confidence"] == 0.8
        assert data["matchedTerms"] == ["cancer"]
        assert data["detectionMethod"] == "TermScan"
        assert data["reason"] == "Cancer-related content detected."
        assert data["title"] == "The Bucket List"
        assert data["mediaType"] == "movie"
        assert data["sources"] == [{"name": "Google Books", "found": True}]
        mock_classify.assert_awaited_once_with("The Bucket List", MediaType.MOVIE, exact_match=False)

    @pytest.mark.asyncio
    async def test_quoted_title_requests_exact_match(self, client):
        with patch.object(main.classifier, "classify", new_callable=AsyncMock,
                          return_value=make_classification()) as mock_classify:
            response = await client.post("/search", json={"title": '"Dune"', "mediaType": "book"})
        assert response.status_code == 200
        mock_classify.assert_awaited_once_with("Dune", MediaType.BOOK, exact_match=True)

    @pytest.mark.asyncio
    async def test_markup_stripped_from_title(self, client):
        with patch.object(main.classifier, "classify", new_callable=AsyncMock,
                          return_value=make_classification()) as mock_classify:
            response = await client.post(
                "/search",
                json={"title": "<script>alert(1)</script><b>Dune</b>", "mediaType": "book"},
            )
        assert response.status_code == 200
        assert mock_classify.await_args.args[0] == "Dune"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", ["", "   ", '""', "<b></b>"])
    async def test_empty_title_is_400(self, client, title):
        with patch.object(main.classifier, "classify", new_callable=AsyncMock) as mock_classify:
            response = await client.post("/search", json={"title": title, "mediaType": "book"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter a title to search"
        mock_classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_media_type_is_422(self, client):
        response = await client.post("/search", json={"title": "Dune", "mediaType": "podcast"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_fields_is_422(self, client):
        response = await client.post("/search", json={"title": "Dune"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_oversized_raw_title_is_422(self, client):
        response = await client.post("/search", json={"title": "x" * 1001, "mediaType": "book"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_no_metadata_and_safe_is_404(self, client):
        classification = make_classification(metadata_found=False, results=[
            SourceResult.not_found("Google Books"),
        ])
        with patch.object(main.classifier, "classify", new_callable=AsyncMock, return_value=classification):
            response = await client.post("/search", json={"title": "Qwzxv", "mediaType": "book"})
        assert response.status_code == 404
        assert response.json()["detail"] == "No results found"

    @pytest.mark.asyncio
    async def test_flagged_without_metadata_is_200(self, client):
        classification = make_classification(
            safe=False, method=DetectionMethod.KNOWN_LIST, metadata_found=False, results=[],
        )
        with patch.object(main.classifier, "classify", new_callable=AsyncMock, return_value=classification):
            response = await client.post("/search", json={"title": "Ove", "mediaType": "book"})
        assert response.status_code == 200
        assert response.json()["detectionMethod"] == "KnownList"

    @pytest.mark.asyncio
    async def test_internal_error_is_500(self, client):
        with patch.object(main.classifier, "classify", new_callable=AsyncMock,
                          side_effect=RuntimeError("unexpected")):
            response = await client.post("/search", json={"title": "Dune", "mediaType": "book"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Internal analysis error"

    @pytest.mark.asyncio
    async def test_end_to_end_with_stub_sources(self, client):
        with patch.object(main.classifier, "sources", [MetadataSource("A teen cancer patient falls in love.")]):
            response = await client.post("/search", json={"title": "The Fault in Our Stars", "mediaType": "book"})

        assert response.status_code == 200
        data = response.json()
        assert data["safe"] is False
        assert data["detectionMethod"] == "KnownList"
        assert data["confidence"] == 0.95
        assert "cancer" in data["matchedTerms"]
        assert data["sources"] == [{"name": "Metadata", "found": True}]


class TestSourcesEndpoint:
    @pytest.mark.asyncio
    async def test_lists_sources(self, client):
        response = await client.get("/sources")
        assert response.status_code == 200
        data = response.json()
        names = [s["name"] for s in data]
        assert "Google Books" in names
        assert "DoesTheDogDie" in names
        tmdb = next(s for s in data if s["name"] == "TMDB")
        assert tmdb["mediaTypes"] == ["movie"]
        assert tmdb["mandatory"] is True
        assert isinstance(tmdb["configured"], bool)
