"""
Coffee directory: faceted catalog query engine.

Filters, sorts and paginates a coffee catalog and computes facet counts with
self-exclusion, plus the client-side state that keeps a directory view in
sync with the browser address bar.
"""

from coffee_directory.models import FilterSpec, SortKey
from coffee_directory.url_builder import DirectoryURLBuilder

__version__ = "0.1.0"

__all__ = ['FilterSpec', 'SortKey', 'DirectoryURLBuilder', '__version__']
