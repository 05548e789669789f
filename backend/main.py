"""
Lauren's List - Backend API
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

FastAPI server that checks books and movies for cancer and
terminal illness themes.

Data provided by Google Books, Open Library, TMDB, Wikipedia,
DoesTheDogDie and the Trigger Warning Database.
"""

import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import load_settings

settings = load_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
import uvicorn

from classifier import ContentClassifier, build_default_sources
from content_db import ContentDatabase
from models import InvalidInput, MediaType
from sanitizer import parse_query
from sources import create_http_client

API_VERSION = "1.0.0"
MAX_RAW_TITLE_LENGTH = 1000  # Raw request limit; titles are cut to 200 after sanitizing

# Initialize components
content_db = ContentDatabase(settings.content_db_path)
http_client = create_http_client(settings)
classifier = ContentClassifier(content_db, build_default_sources(settings, content_db, http_client))

# Startup validation - log source availability
logger.info("=== Source Availability ===")
for source in classifier.sources:
    status = "ENABLED" if source.configured else "DISABLED"
    media = "/".join(m.value for m in source.media_types)
    logger.info(f"  {source.name} ({media}): {status}")
if not settings.tmdb_api_key:
    logger.warning("TMDB_API_KEY not set. Movie metadata lookups disabled. Set env var to enable.")
if not settings.dtdd_api_key:
    logger.warning("DOESTHEDOGDIE_API_KEY not set. DoesTheDogDie trigger lookups disabled.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await classifier.close()


app = FastAPI(
    title="Lauren's List API",
    description="Checks books and movies for cancer and terminal illness themes",
    version=API_VERSION,
    lifespan=lifespan,
)

# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Attach security headers (X-Content-Type-Options, X-Frame-Options, etc.)."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    return response

# CORS: only the configured front-end origins (ALLOWED_ORIGINS in .env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)
logger.info(f"CORS: {len(settings.allowed_origins)} allowed origin(s)")


# Request/Response models
class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., max_length=MAX_RAW_TITLE_LENGTH)
    media_type: MediaType = Field(..., alias="mediaType")


class SourceStatus(BaseModel):
    name: str
    found: bool


class SearchResponse(BaseModel):
    safe: bool
    confidence: float
    matchedTerms: list[str]
    detectionMethod: str
    reason: str
    title: str
    mediaType: str
    sources: list[SourceStatus] = []


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": API_VERSION
    }


@app.post("/search", response_model=SearchResponse)
async def search(request: SearchRequest):
    """
    Check a book or movie title.

    A title wrapped in quotes is matched exactly. Returns 404 when no
    metadata source knows the title and nothing flagged it.
    """
    try:
        query = parse_query(request.title)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        classification = await classifier.classify(
            query.title,
            request.media_type,
            exact_match=query.exact_match,
        )
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Search endpoint error: {e}")
        raise HTTPException(status_code=500, detail="Internal analysis error")

    verdict = classification.verdict
    if verdict.safe and not classification.metadata_found:
        raise HTTPException(status_code=404, detail="No results found")

    return {
        **verdict.to_dict(),
        "title": classification.work.title,
        "mediaType": classification.work.media_type.value,
        "sources": [{"name": r.source_name, "found": r.found} for r in classification.results],
    }


@app.get("/sources")
async def get_sources():
    """List the registered sources and whether each one is configured"""
    return [
        {
            "name": s.name,
            "mediaTypes": [m.value for m in s.media_types],
            "mandatory": s.mandatory,
            "configured": s.configured,
        }
        for s in classifier.sources
    ]


if __name__ == "__main__":
    logger.info("Lauren's List API")
    logger.info("Starting server at http://127.0.0.1:8000")
    logger.info("API docs: http://127.0.0.1:8000/docs")
    # SECURITY: bind to localhost only
    uvicorn.run(app, host="127.0.0.1", port=8000)
