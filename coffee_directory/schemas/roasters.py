"""Roaster directory data models"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional

from .filter_meta import ValueFacetBucket


class RoasterSummary(BaseModel):
    """One roaster with aggregate stats over its coffees"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    name: str
    website: Optional[str] = None
    hq_city: Optional[str] = None
    hq_state: Optional[str] = None
    hq_country: Optional[str] = None
    is_active: bool = True
    instagram_handle: Optional[str] = None
    is_featured: Optional[bool] = None
    is_editors_pick: Optional[bool] = None

    # Aggregates over the roaster's coffees
    coffee_count: int = 0
    rated_coffee_count: int = 0
    avg_coffee_rating: Optional[float] = None

    # Roaster reviews
    avg_rating: Optional[float] = None
    total_ratings_count: Optional[int] = None
    recommend_percentage: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class RoasterPage(BaseModel):
    """One page of roaster results"""
    model_config = ConfigDict(populate_by_name=True)

    items: List[RoasterSummary]
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")


class RoasterFilterMetaTotals(BaseModel):
    """Totals across the filtered roaster set"""
    roasters: int = 0
    active_roasters: int = 0


class RoasterFilterMeta(BaseModel):
    """Facet buckets for the roaster directory"""
    cities: List[ValueFacetBucket] = Field(default_factory=list)
    states: List[ValueFacetBucket] = Field(default_factory=list)
    countries: List[ValueFacetBucket] = Field(default_factory=list)
    totals: RoasterFilterMetaTotals = Field(default_factory=RoasterFilterMetaTotals)
