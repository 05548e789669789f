"""
Lauren's List - Source Adapters
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Common contract for every external data source. A source turns a Work into
free text (plus an optional membership flag). Sources are best-effort: any
failure, including a timeout, comes back as "not found" and never raises.
"""

import asyncio
import httpx
import logging
from typing import Any, Optional

from models import MediaType, SourceResult, SourceUnavailable, Work, DetectionMethod
from config import DEFAULT_SOURCE_TIMEOUT, Settings

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; LaurensList/1.0)"
MAX_SOURCE_TEXT_LENGTH = 50000  # Upper bound on text kept from any single source
RETRY_BASE_DELAY = 1.0          # Seconds before the first retry, doubled each time


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Shared client used by every source for the lifetime of the app."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


def join_text(*parts) -> str:
    """Join the non-empty pieces of text with single spaces."""
    pieces = []
    for part in parts:
        if not part:
            continue
        if isinstance(part, (list, tuple)):
            part = " ".join(str(p) for p in part if p)
        part = str(part).strip()
        if part:
            pieces.append(part)
    return " ".join(pieces)


class SourceAdapter:
    """
    Base class for sources.

    Subclasses set the class attributes and implement fetch_text(), which may
    raise freely. Callers use fetch(), which applies the per-source timeout
    and converts every failure into SourceResult.not_found().
    """

    name: str = "Source"
    media_types: tuple[MediaType, ...] = (MediaType.BOOK, MediaType.MOVIE)
    mandatory: bool = False  # Primary metadata lookup
    enrichment: bool = False  # Terms from this text alone never make a work unsafe
    membership_method: Optional[DetectionMethod] = None

    def __init__(self, client: httpx.AsyncClient, timeout: float = DEFAULT_SOURCE_TIMEOUT, retries: int = 0):
        self.client = client
        self.timeout = timeout
        self.retries = retries

    @property
    def configured(self) -> bool:
        """False when a required API key is missing."""
        return True

    def supports(self, media_type: MediaType) -> bool:
        return media_type in self.media_types

    async def fetch_text(self, work: Work) -> SourceResult:
        raise NotImplementedError

    async def fetch(self, work: Work) -> SourceResult:
        """Run fetch_text() under the timeout; failures become "not found"."""
        if not self.supports(work.media_type):
            return SourceResult.not_found(self.name)
        try:
            result = await asyncio.wait_for(self.fetch_text(work), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{self.name}: timed out after {self.timeout}s")
            return SourceResult.not_found(self.name)
        except Exception as e:
            logger.warning(f"{self.name}: unavailable ({e!r})")
            return SourceResult.not_found(self.name)

        if not result.found:
            return SourceResult.not_found(self.name)
        return result

    def _result(self, text: str, title: str = "", member: bool = False) -> SourceResult:
        return SourceResult(
            source_name=self.name,
            text=text[:MAX_SOURCE_TEXT_LENGTH],
            found=True,
            title=title,
            member=member,
        )

    async def _request(self, url: str, params: Optional[dict] = None,
                       headers: Optional[dict] = None) -> Optional[httpx.Response]:
        """GET with retry on 5xx and network errors (self.retries extra attempts)"""
        delay = RETRY_BASE_DELAY
        last_exception = None
        attempts = self.retries + 1

        for attempt in range(attempts):
            try:
                response = await self.client.get(url, params=params, headers=headers)
                # Success or client error (4xx) - return immediately
                if response.status_code < 500:
                    return response
                logger.warning(f"{self.name}: server error {response.status_code} (attempt {attempt+1}/{attempts})")
            except (httpx.RequestError, httpx.TimeoutException) as e:
                last_exception = e
                logger.warning(f"{self.name}: network error {e!r} (attempt {attempt+1}/{attempts})")

            if attempt < attempts - 1:
                await asyncio.sleep(delay)
                delay *= 2.0

        if last_exception:
            raise last_exception
        return None

    def _check(self, response: Optional[httpx.Response]) -> httpx.Response:
        if response is None:
            raise SourceUnavailable(f"{self.name}: no response")
        if response.status_code != 200:
            raise SourceUnavailable(f"{self.name}: HTTP {response.status_code}")
        return response

    async def _get_json(self, url: str, params: Optional[dict] = None,
                        headers: Optional[dict] = None) -> Any:
        response = self._check(await self._request(url, params=params, headers=headers))
        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailable(f"{self.name}: malformed JSON") from e

    async def _get_html(self, url: str, params: Optional[dict] = None,
                        headers: Optional[dict] = None) -> str:
        response = self._check(await self._request(url, params=params, headers=headers))
        return response.text
