"""
Debounced free-text search.

Keystrokes update a local draft immediately. After the debounce window the
draft is sent to the name-match oracle, and its candidate IDs are applied to
the store only if the draft has not changed in the meantime.
"""

import asyncio
import logging
from typing import List, Optional, Protocol

from coffee_directory.client.store import DirectoryStore
from coffee_directory.config import DirectoryConfig
from coffee_directory.models import FilterSpec


logger = logging.getLogger(__name__)


class NameMatchOracle(Protocol):
    """Fuzzy name matcher returning candidate coffee IDs."""

    async def match(self, query: str) -> List[str]:
        ...


class DebouncedTextSearch:
    """
    Debounces text input and applies oracle results to the store.

    Every keystroke bumps a monotonic draft token. A debounce or oracle task
    only acts if the token it was started with is still current, so results
    for an outdated draft are discarded.

    Attributes:
        store: Directory store receiving the committed query
        oracle: Name-match oracle
        debounce_seconds: Quiet period before a draft is committed
        draft: Text currently in the search box
    """

    def __init__(self, store: DirectoryStore, oracle: NameMatchOracle, debounce_ms: int = 300):
        self.store = store
        self.oracle = oracle
        self.debounce_seconds = debounce_ms / 1000.0
        self.draft = store.spec.text_query or ""
        self._token = 0
        self._debounce_task: Optional[asyncio.Task] = None
        self._oracle_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls, store: DirectoryStore, oracle: NameMatchOracle, config: DirectoryConfig
    ) -> "DebouncedTextSearch":
        return cls(store, oracle, debounce_ms=config.search_debounce_ms)

    @property
    def token(self) -> int:
        return self._token

    @property
    def is_pending(self) -> bool:
        """True while a debounce or oracle task is outstanding."""
        return any(
            task is not None and not task.done()
            for task in (self._debounce_task, self._oracle_task)
        )

    def on_input(self, value: str) -> None:
        """Record a keystroke and restart the debounce timer."""
        self.draft = value
        self._token += 1
        self._cancel(self._debounce_task)
        self._debounce_task = asyncio.ensure_future(self._debounce(self._token, value))

    def commit(self) -> None:
        """Commit the draft immediately (blur or Enter)."""
        self._cancel(self._debounce_task)
        self._debounce_task = None
        query = self.draft.strip()
        if not query:
            self._clear()
            return
        # The store's candidate IDs always belong to its text query
        if query == self.store.spec.text_query:
            return
        self.store.update_filters(text_query=query, coffee_ids=None)
        self._start_oracle(self._token, query)

    def sync_from_store(self, spec: FilterSpec) -> None:
        """Adopt the store's query when the user is not typing."""
        if self.is_pending:
            return
        self.draft = spec.text_query or ""

    async def wait_idle(self) -> None:
        """Wait until outstanding debounce and oracle work has finished."""
        while self.is_pending:
            tasks = [t for t in (self._debounce_task, self._oracle_task) if t is not None]
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel outstanding work."""
        tasks = [t for t in (self._debounce_task, self._oracle_task) if t is not None]
        for task in tasks:
            self._cancel(task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._debounce_task = None
        self._oracle_task = None

    async def _debounce(self, token: int, value: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        if token != self._token:
            return
        query = value.strip()
        if not query:
            self._clear()
            return
        self._start_oracle(token, query)

    def _start_oracle(self, token: int, query: str) -> None:
        self._cancel(self._oracle_task)
        self._oracle_task = asyncio.ensure_future(self._query_oracle(token, query))

    async def _query_oracle(self, token: int, query: str) -> None:
        try:
            ids = await self.oracle.match(query)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Name match failed for {query!r}, falling back to text match: {e}")
            ids = []

        if token != self._token or self.draft.strip() != query:
            logger.debug(f"Discarding stale name match results for {query!r}")
            return

        self.store.update_filters(text_query=query, coffee_ids=list(ids) or None)

    def _clear(self) -> None:
        self._cancel(self._oracle_task)
        self._oracle_task = None
        self.store.update_filters(text_query=None, coffee_ids=None)

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done():
            task.cancel()
