"""
Two-way synchronization between the directory store and the address bar.

The store is authoritative. Store changes are mirrored into the address bar
with history replacement; external address changes (back/forward) are parsed
and written into the store. Loops are prevented by comparing against the
last query string written, never by timing.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol

from coffee_directory.client.store import DirectoryStore
from coffee_directory.models import FilterSpec
from coffee_directory.url_builder import DirectoryURLBuilder


logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    """Lifecycle of the synchronizer"""
    UNINITIALIZED = "uninitialized"
    SYNCHRONIZED = "synchronized"


class AddressBar(Protocol):
    """Browser location as seen by the synchronizer."""

    def current(self) -> str:
        """Current query string, without the leading "?"."""
        ...

    def replace(self, query_string: str) -> None:
        """Replace the current history entry's query string."""
        ...


class MemoryAddressBar:
    """
    History stack held in memory.

    Attributes:
        entries: Query strings in history order
        index: Position of the current entry
        replace_count: Number of replace() calls made
    """

    def __init__(self, query_string: str = ""):
        self.entries: List[str] = [query_string]
        self.index = 0
        self.replace_count = 0

    def current(self) -> str:
        return self.entries[self.index]

    def replace(self, query_string: str) -> None:
        self.entries[self.index] = query_string
        self.replace_count += 1

    def push(self, query_string: str) -> str:
        """Navigate to a new entry, discarding forward history."""
        del self.entries[self.index + 1:]
        self.entries.append(query_string)
        self.index += 1
        return query_string

    def back(self) -> str:
        if self.index > 0:
            self.index -= 1
        return self.current()

    def forward(self) -> str:
        if self.index < len(self.entries) - 1:
            self.index += 1
        return self.current()


class DirectoryStateSynchronizer:
    """
    Keeps a DirectoryStore and an AddressBar in agreement.

    Attributes:
        store: The authoritative directory store
        address_bar: Location to mirror into
        state: Current lifecycle state
        last_written: Canonical query string the address bar is known to hold
    """

    def __init__(
        self,
        store: DirectoryStore,
        address_bar: AddressBar,
        url_builder: Optional[DirectoryURLBuilder] = None,
    ):
        self.store = store
        self.address_bar = address_bar
        self.url_builder = url_builder or DirectoryURLBuilder()
        self.state = SyncState.UNINITIALIZED
        self.last_written: Optional[str] = None
        self._external_listeners: List[Callable[[FilterSpec], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def initialize(self, initial: Optional[FilterSpec] = None) -> FilterSpec:
        """
        Seed the store once without writing to the address bar.

        Args:
            initial: Server-computed starting state; parsed from the address
                bar when omitted

        Returns:
            The seeded FilterSpec

        Raises:
            ValueError: If already initialized
        """
        if self.state != SyncState.UNINITIALIZED:
            raise ValueError(f"Cannot initialize from state: {self.state.value}")

        if initial is None:
            initial = self.url_builder.parse_query_string(self.address_bar.current())

        self.store.set_all(initial)
        self.last_written = self.url_builder.build_query_string(self.store.spec)
        self._unsubscribe = self.store.subscribe(self._on_store_change)
        self.state = SyncState.SYNCHRONIZED
        logger.debug(f"Directory state seeded: {self.last_written!r}")
        return self.store.spec

    def apply(self, spec: FilterSpec) -> bool:
        """Write a new state into the store; the address bar follows."""
        self._require_synchronized()
        return self.store.set_all(spec)

    def handle_location_change(self, query_string: str) -> FilterSpec:
        """
        Adopt an address change made outside the store (back/forward).

        Args:
            query_string: New query string of the address bar

        Returns:
            The FilterSpec now held by the store
        """
        self._require_synchronized()
        spec = self.url_builder.parse_query_string(query_string)
        # The address bar already shows this state; do not write it back
        self.last_written = self.url_builder.build_query_string(spec)
        if self.store.set_all(spec):
            for listener in list(self._external_listeners):
                listener(spec)
        return self.store.spec

    def on_external_change(self, listener: Callable[[FilterSpec], None]) -> None:
        """Register a listener for store changes caused by navigation."""
        self._external_listeners.append(listener)

    def detach(self) -> None:
        """Stop mirroring store changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.state = SyncState.UNINITIALIZED

    def _on_store_change(self, spec: FilterSpec) -> None:
        if self.state != SyncState.SYNCHRONIZED:
            return
        query_string = self.url_builder.build_query_string(spec)
        if query_string == self.last_written:
            return
        self.address_bar.replace(query_string)
        self.last_written = query_string

    def _require_synchronized(self) -> None:
        if self.state != SyncState.SYNCHRONIZED:
            raise ValueError(f"Synchronizer not initialized (state: {self.state.value})")
