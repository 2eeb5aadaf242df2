"""Response models for the coffee directory API"""

from .catalog import CatalogItem, CatalogPage, SearchIndexEntry
from .filter_meta import (
    DirectoryPayload,
    EntityFacetBucket,
    FilterMeta,
    FilterMetaTotals,
    ValueFacetBucket,
)
from .roasters import RoasterFilterMeta, RoasterFilterMetaTotals, RoasterPage, RoasterSummary

__all__ = [
    "CatalogItem",
    "CatalogPage",
    "SearchIndexEntry",
    "DirectoryPayload",
    "EntityFacetBucket",
    "FilterMeta",
    "FilterMetaTotals",
    "ValueFacetBucket",
    "RoasterFilterMeta",
    "RoasterFilterMetaTotals",
    "RoasterPage",
    "RoasterSummary",
]
