"""
Directory data loading.

Fetches the result page and facet counts for every logical store change. A
newer change cancels the fetch still in flight for an older one.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Protocol

from coffee_directory.catalog.concurrency import gather_fail_fast
from coffee_directory.client.store import DirectoryStore
from coffee_directory.models import FilterSpec
from coffee_directory.schemas import CatalogPage, FilterMeta


logger = logging.getLogger(__name__)


class DirectorySource(Protocol):
    """Anything that can serve the list and the facet counts."""

    async def fetch_coffees(self, spec: FilterSpec) -> CatalogPage:
        ...

    async def fetch_filter_meta(self, spec: FilterSpec) -> FilterMeta:
        ...


class DirectoryDataLoader:
    """
    Keeps list and facet data in step with a DirectoryStore.

    Attributes:
        store: Directory store to follow
        source: Client serving list and facet data
        page: Latest result page
        meta: Latest facet counts
        error: Error of the latest fetch, if it failed
        loaded_spec: FilterSpec the current data belongs to
    """

    def __init__(self, store: DirectoryStore, source: DirectorySource):
        self.store = store
        self.source = source
        self.page: Optional[CatalogPage] = None
        self.meta: Optional[FilterMeta] = None
        self.error: Optional[Exception] = None
        self.loaded_spec: Optional[FilterSpec] = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[Callable[["DirectoryDataLoader"], None]] = []
        self._unsubscribe = store.subscribe(self._on_store_change)

    def seed(self, page: CatalogPage, meta: FilterMeta) -> None:
        """Adopt server-rendered data for the current store state."""
        self.page = page
        self.meta = meta
        self.error = None
        self.loaded_spec = self.store.spec

    def on_loaded(self, listener: Callable[["DirectoryDataLoader"], None]) -> None:
        self._listeners.append(listener)

    async def load(self, spec: FilterSpec) -> None:
        """
        Fetch list and facet counts concurrently for ``spec``.

        Raises:
            Exception: Whatever the source raised; the other fetch is cancelled
        """
        page, meta = await gather_fail_fast(
            self.source.fetch_coffees(spec),
            self.source.fetch_filter_meta(spec),
        )
        self.page = page
        self.meta = meta
        self.error = None
        self.loaded_spec = spec
        for listener in list(self._listeners):
            listener(self)

    async def wait_idle(self) -> None:
        while self._task is not None and not self._task.done():
            await asyncio.gather(self._task, return_exceptions=True)

    async def aclose(self) -> None:
        self._unsubscribe()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    def _on_store_change(self, spec: FilterSpec) -> None:
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling superseded directory fetch")
            self._task.cancel()
        self._task = asyncio.ensure_future(self._refresh(spec))

    async def _refresh(self, spec: FilterSpec) -> None:
        try:
            await self.load(spec)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Directory fetch failed: {e}")
            self.error = e
