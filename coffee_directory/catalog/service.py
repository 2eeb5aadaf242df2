"""
Catalog service.

Orchestrates identifier resolution, the result list and facet counts for one
directory request.
"""

import logging
from typing import List, Optional, Sequence

from coffee_directory.catalog.concurrency import gather_fail_fast
from coffee_directory.catalog.dimensions import FacetDimension
from coffee_directory.catalog.facets import FacetEngine
from coffee_directory.catalog.fetcher import ResultFetcher
from coffee_directory.catalog.resolver import IdentifierResolver
from coffee_directory.error_handling.exceptions import CatalogError, CatalogQueryError
from coffee_directory.models import FilterSpec
from coffee_directory.schemas.catalog import CatalogPage, SearchIndexEntry
from coffee_directory.schemas.filter_meta import DirectoryPayload, FilterMeta
from coffee_directory.storage.base import CatalogStore


logger = logging.getLogger(__name__)


class CatalogService:
    """
    Entry point for catalog reads.

    Every method resolves public identifiers first, so callers may pass a
    FilterSpec straight from the request parser.
    """

    def __init__(self, store: CatalogStore):
        self.store = store
        self.resolver = IdentifierResolver(store)
        self.fetcher = ResultFetcher(store)
        self.facets = FacetEngine(store)

    async def list_coffees(self, spec: FilterSpec) -> CatalogPage:
        """Fetch one page of coffees."""
        resolved = await self.resolver.resolve(spec)
        return await self.fetcher.fetch(resolved)

    async def filter_meta(
        self,
        spec: FilterSpec,
        dimensions: Optional[Sequence[FacetDimension]] = None,
    ) -> FilterMeta:
        """Compute facet counts for the filters in ``spec``."""
        resolved = await self.resolver.resolve(spec)
        return await self.facets.compute(resolved, dimensions)

    async def directory(self, spec: FilterSpec) -> DirectoryPayload:
        """
        Compute the list and the facet counts concurrently.

        Identifiers are resolved once and shared by both branches. A failure
        in either branch cancels the other.

        Args:
            spec: Filter intent from the request

        Returns:
            DirectoryPayload with the result page and the filter meta
        """
        resolved = await self.resolver.resolve(spec)
        page, meta = await gather_fail_fast(
            self.fetcher.fetch(resolved),
            self.facets.compute(resolved),
        )
        logger.info(
            f"Directory request: {page.total} coffees, page {page.page}/{page.total_pages}"
        )
        return DirectoryPayload(results=page, filter_meta=meta)

    async def search_index(self) -> List[SearchIndexEntry]:
        """Return the entries backing client-side name search."""
        try:
            rows = await self.store.fetch_search_index()
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Search index query failed: {e}")
            raise CatalogQueryError(str(e), stage="search_index") from e
        return [SearchIndexEntry.model_validate(row) for row in rows]
