"""
Faceted catalog query engine.

Turns a FilterSpec into a sorted result page and into facet counts with
self-exclusion.
"""

from .concurrency import gather_fail_fast
from .dimensions import DIMENSIONS, FacetDimension, IdentifierFamily
from .facets import FacetEngine
from .fetcher import ResultFetcher, SORT_ORDERS, total_pages
from .predicate import Predicate, build_predicate
from .resolver import IdentifierResolver
from .roasters import RoasterDirectory, RoasterFacet, build_roaster_predicate
from .service import CatalogService

__all__ = [
    'gather_fail_fast',
    'DIMENSIONS',
    'FacetDimension',
    'IdentifierFamily',
    'FacetEngine',
    'ResultFetcher',
    'SORT_ORDERS',
    'total_pages',
    'Predicate',
    'build_predicate',
    'IdentifierResolver',
    'RoasterDirectory',
    'RoasterFacet',
    'build_roaster_predicate',
    'CatalogService',
]
