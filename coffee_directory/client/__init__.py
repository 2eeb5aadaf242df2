"""
Client-side directory state.

Store, address-bar synchronization, debounced search, price slider and data
loading for the directory view.
"""

from .http_client import CatalogClient
from .loader import DirectoryDataLoader
from .range_drag import PriceRangeDrag
from .store import DirectoryStore
from .synchronizer import (
    AddressBar,
    DirectoryStateSynchronizer,
    MemoryAddressBar,
    SyncState,
)
from .text_search import DebouncedTextSearch, NameMatchOracle

__all__ = [
    'CatalogClient',
    'DirectoryDataLoader',
    'PriceRangeDrag',
    'DirectoryStore',
    'AddressBar',
    'DirectoryStateSynchronizer',
    'MemoryAddressBar',
    'SyncState',
    'DebouncedTextSearch',
    'NameMatchOracle',
]
