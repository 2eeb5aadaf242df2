"""
Error handling module for the coffee directory.

Provides the catalog exception hierarchy and retry logic.
"""

from .error_handler import ErrorHandler, RetryConfig
from .exceptions import (
    CatalogError,
    CatalogQueryError,
    StorageNotInitializedError,
    UnresolvedFilterError,
)

__all__ = [
    'ErrorHandler',
    'RetryConfig',
    'CatalogError',
    'CatalogQueryError',
    'StorageNotInitializedError',
    'UnresolvedFilterError',
]
