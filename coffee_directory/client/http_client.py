"""
HTTP client for the coffee directory API.

Uses aiohttp with retries for transient failures (connection errors,
timeouts and 5xx responses).
"""

import asyncio
import logging
from typing import Any, List, Optional

import aiohttp

from coffee_directory.config import ClientConfig
from coffee_directory.error_handling import CatalogQueryError, ErrorHandler
from coffee_directory.models import FilterSpec
from coffee_directory.schemas import CatalogPage, DirectoryPayload, FilterMeta, SearchIndexEntry
from coffee_directory.url_builder import DirectoryURLBuilder


logger = logging.getLogger(__name__)

# Failures worth another attempt; 4xx responses are not among them
RETRYABLE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


class CatalogClient:
    """
    Async client for the directory endpoints.

    Can be used as an async context manager; a session passed in by the
    caller is never closed by the client.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        session: Optional[aiohttp.ClientSession] = None,
        error_handler: Optional[ErrorHandler] = None,
        config: Optional[ClientConfig] = None,
    ):
        config = config or ClientConfig(base_url=base_url)
        self.base_url = config.base_url.rstrip("/")
        self.session = session
        self._owns_session = session is None
        self.error_handler = error_handler or ErrorHandler(
            max_retries=config.max_retries,
            initial_timeout_ms=config.initial_timeout_ms,
            timeout_multiplier=config.timeout_multiplier,
            retry_on=RETRYABLE_ERRORS,
        )
        self.url_builder = DirectoryURLBuilder()

    async def __aenter__(self) -> "CatalogClient":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the session if the client created it"""
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def fetch_coffees(self, spec: FilterSpec) -> CatalogPage:
        """Fetch one page of coffees for the given filters."""
        data = await self._get("/api/coffees", spec)
        return CatalogPage.model_validate(data)

    async def fetch_filter_meta(self, spec: FilterSpec) -> FilterMeta:
        """Fetch facet counts for the given filters."""
        data = await self._get("/api/coffees/filter-meta", spec)
        return FilterMeta.model_validate(data)

    async def fetch_directory(self, spec: FilterSpec) -> DirectoryPayload:
        """Fetch the result page and facet counts in one request."""
        data = await self._get("/api/coffees/directory", spec)
        return DirectoryPayload.model_validate(data)

    async def fetch_search_index(self) -> List[SearchIndexEntry]:
        """Fetch the client-side search index."""
        data = await self._get("/api/search-index")
        return [SearchIndexEntry.model_validate(entry) for entry in data]

    async def _get(self, path: str, spec: Optional[FilterSpec] = None) -> Any:
        query_string = self.url_builder.build_query_string(spec) if spec is not None else ""
        url = f"{self.base_url}{path}"
        if query_string:
            url = f"{url}?{query_string}"
        return await self.error_handler.retry_with_backoff(
            self._request_json, url, timeout_ms=self.error_handler.config.initial_timeout_ms
        )

    async def _request_json(self, url: str, timeout_ms: int) -> Any:
        session = self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000.0)
        async with session.get(url, timeout=timeout) as response:
            if 400 <= response.status < 500:
                detail = await response.text()
                logger.error(f"Request rejected ({response.status}): {url}")
                raise CatalogQueryError(f"{response.status}: {detail}", stage="request")
            response.raise_for_status()
            return await response.json()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session
