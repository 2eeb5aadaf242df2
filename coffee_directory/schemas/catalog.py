"""Catalog list data models"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional


class CatalogItem(BaseModel):
    """One row of the denormalized coffee directory relation"""
    model_config = ConfigDict(from_attributes=True)

    coffee_id: str
    slug: str
    name: str
    roaster_id: str
    roaster_slug: Optional[str] = None
    roaster_name: Optional[str] = None
    roaster_is_active: bool = True
    status: Optional[str] = None
    process: Optional[str] = None
    roast_level: Optional[str] = None
    bean_species: Optional[str] = None
    image_url: Optional[str] = None
    direct_buy_url: Optional[str] = None
    in_stock_count: int = 0
    min_price_in_stock: Optional[float] = None
    best_variant_id: Optional[str] = None
    best_normalized_250g: Optional[float] = None
    weights_available: List[int] = Field(default_factory=list)
    has_250g_bool: bool = False
    has_sensory: bool = False
    decaf: bool = False
    is_limited: bool = False
    works_with_milk: bool = False
    rating_avg: Optional[float] = None
    rating_count: int = 0
    region_ids: List[str] = Field(default_factory=list)
    estate_ids: List[str] = Field(default_factory=list)
    brew_method_ids: List[str] = Field(default_factory=list)
    flavor_keys: List[str] = Field(default_factory=list)
    canon_flavor_ids: List[str] = Field(default_factory=list)

    @field_validator("coffee_id", "roaster_id", "best_variant_id", mode="before")
    @classmethod
    def id_as_text(cls, value: Any) -> Any:
        """Accept UUID keys as returned by asyncpg"""
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("region_ids", "estate_ids", "brew_method_ids", "flavor_keys", "canon_flavor_ids", mode="before")
    @classmethod
    def ids_as_text(cls, value: Any) -> Any:
        if value is None:
            return []
        return [item if isinstance(item, str) else str(item) for item in value]


class CatalogPage(BaseModel):
    """One page of directory results"""
    model_config = ConfigDict(populate_by_name=True)

    items: List[CatalogItem]
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")


class SearchIndexEntry(BaseModel):
    """Entry of the client-side name search index"""
    coffee_id: str
    slug: str
    name: str
    roaster_name: Optional[str] = None
    flavor_keys: List[str] = Field(default_factory=list)
