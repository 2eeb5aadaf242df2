"""
Catalog storage backends.

Provides the read contract and its Postgres and in-memory implementations.
"""

from .base import CatalogStore, JoinRow, OrderTerm, Row
from .memory import InMemoryCatalogStore
from .postgres import PostgresCatalogStore

__all__ = [
    'CatalogStore',
    'JoinRow',
    'OrderTerm',
    'Row',
    'InMemoryCatalogStore',
    'PostgresCatalogStore',
]
