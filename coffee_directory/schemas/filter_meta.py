"""Facet count data models"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from .catalog import CatalogPage


class ValueFacetBucket(BaseModel):
    """Count for one value of a categorical dimension"""
    value: str
    label: str
    count: int


class EntityFacetBucket(BaseModel):
    """Count for one entity of a relational dimension"""
    id: str
    label: str
    count: int
    slug: Optional[str] = None


class FilterMetaTotals(BaseModel):
    """Totals across the filtered result set"""
    coffees: int = 0
    roasters: int = 0


class FilterMeta(BaseModel):
    """Facet buckets for every filterable dimension"""
    model_config = ConfigDict(populate_by_name=True)

    totals: FilterMetaTotals = Field(default_factory=FilterMetaTotals)
    roast_levels: List[ValueFacetBucket] = Field(default_factory=list, alias="roastLevels")
    processes: List[ValueFacetBucket] = Field(default_factory=list)
    statuses: List[ValueFacetBucket] = Field(default_factory=list)
    species: List[ValueFacetBucket] = Field(default_factory=list)
    roasters: List[EntityFacetBucket] = Field(default_factory=list)
    regions: List[EntityFacetBucket] = Field(default_factory=list)
    estates: List[EntityFacetBucket] = Field(default_factory=list)
    brew_methods: List[EntityFacetBucket] = Field(default_factory=list, alias="brewMethods")
    flavor_notes: List[EntityFacetBucket] = Field(default_factory=list, alias="flavorNotes")
    canonical_flavors: List[EntityFacetBucket] = Field(
        default_factory=list, alias="canonicalFlavors"
    )


class DirectoryPayload(BaseModel):
    """Initial directory state: first result page plus facet counts"""
    model_config = ConfigDict(populate_by_name=True)

    results: CatalogPage = Field(alias="list")
    filter_meta: FilterMeta = Field(alias="filterMeta")
