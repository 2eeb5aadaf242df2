"""
Data models for the coffee directory.

This module defines the filter intents for coffees (FilterSpec) and
roasters (RoasterFilterSpec) together with the enumerations they reference.
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


DEFAULT_PAGE = 1
PAGE_SIZE = 24
ROASTER_PAGE_SIZE = 15

# Roaster listings without a country filter show roasters based here
DEFAULT_ROASTER_COUNTRY = "india"


class RoastLevel(str, Enum):
    """Roast level of a coffee."""
    LIGHT = "light"
    LIGHT_MEDIUM = "light_medium"
    MEDIUM = "medium"
    MEDIUM_DARK = "medium_dark"
    DARK = "dark"


class ProcessMethod(str, Enum):
    """Green coffee processing method."""
    WASHED = "washed"
    NATURAL = "natural"
    HONEY = "honey"
    PULPED_NATURAL = "pulped_natural"
    MONSOONED = "monsooned"
    WET_HULLED = "wet_hulled"
    ANAEROBIC = "anaerobic"
    CARBONIC_MACERATION = "carbonic_maceration"
    DOUBLE_FERMENTED = "double_fermented"
    EXPERIMENTAL = "experimental"
    OTHER = "other"


class CoffeeStatus(str, Enum):
    """Publication status of a coffee."""
    ACTIVE = "active"
    SEASONAL = "seasonal"
    DISCONTINUED = "discontinued"
    DRAFT = "draft"
    HIDDEN = "hidden"
    COMING_SOON = "coming_soon"
    ARCHIVED = "archived"


class BeanSpecies(str, Enum):
    """Bean species or blend composition."""
    ARABICA = "arabica"
    ROBUSTA = "robusta"
    LIBERICA = "liberica"
    BLEND = "blend"
    ARABICA_80_ROBUSTA_20 = "arabica_80_robusta_20"
    ARABICA_70_ROBUSTA_30 = "arabica_70_robusta_30"
    ARABICA_60_ROBUSTA_40 = "arabica_60_robusta_40"
    ARABICA_50_ROBUSTA_50 = "arabica_50_robusta_50"
    ROBUSTA_80_ARABICA_20 = "robusta_80_arabica_20"
    ARABICA_CHICORY = "arabica_chicory"
    ROBUSTA_CHICORY = "robusta_chicory"
    BLEND_CHICORY = "blend_chicory"
    FILTER_COFFEE_MIX = "filter_coffee_mix"
    EXCELSA = "excelsa"


class SortKey(str, Enum):
    """Result ordering requested by the client."""
    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NEWEST = "newest"
    BEST_VALUE = "best_value"
    RATING_DESC = "rating_desc"
    NAME_ASC = "name_asc"


class RoasterSortKey(str, Enum):
    """Roaster listing order."""
    RELEVANCE = "relevance"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    COFFEE_COUNT_DESC = "coffee_count_desc"
    RATING_DESC = "rating_desc"
    NEWEST = "newest"


# Public identifier fields, translated into internal IDs before querying
SLUG_FIELDS = ("roaster_slugs", "region_slugs", "estate_keys", "canon_flavor_slugs")

LIST_FIELDS = (
    "coffee_ids",
    "roast_levels",
    "processes",
    "statuses",
    "species",
    "roaster_ids",
    "roaster_slugs",
    "region_ids",
    "region_slugs",
    "estate_ids",
    "estate_keys",
    "brew_method_ids",
    "flavor_keys",
    "canon_flavor_ids",
    "canon_flavor_slugs",
)

FLAG_FIELDS = (
    "in_stock_only",
    "has_250g_only",
    "limited_only",
    "decaf_only",
    "has_sensory_only",
    "works_with_milk",
)


@dataclass
class FilterSpec:
    """
    The query intent for one directory request.

    List fields use None for "no constraint"; an empty list is treated the
    same way. Every field combines with the others by logical AND.

    Attributes:
        text_query: Free-text match on the coffee name
        coffee_ids: Explicit item IDs; replaces text matching when present
        roast_levels: Roast levels, any-of
        processes: Processing methods, any-of
        statuses: Coffee statuses, any-of
        species: Bean species, any-of
        roaster_ids: Internal roaster IDs, any-of
        roaster_slugs: Public roaster slugs (boundary only)
        region_ids: Internal region IDs, any-of
        region_slugs: Public region slugs (boundary only)
        estate_ids: Internal estate IDs, any-of
        estate_keys: Public estate keys (boundary only)
        brew_method_ids: Brew method IDs, any-of
        flavor_keys: Flavor note keys, all-of
        canon_flavor_ids: Canonical flavor node IDs, any-of
        canon_flavor_slugs: Public canonical flavor slugs (boundary only)
        min_price: Inclusive lower bound on the normalized 250g price
        max_price: Inclusive upper bound on the normalized 250g price
        page: 1-based page number
        sort: Result ordering
        limit: Page size
    """
    text_query: Optional[str] = None
    coffee_ids: Optional[List[str]] = None
    roast_levels: Optional[List[RoastLevel]] = None
    processes: Optional[List[ProcessMethod]] = None
    statuses: Optional[List[CoffeeStatus]] = None
    species: Optional[List[BeanSpecies]] = None
    roaster_ids: Optional[List[str]] = None
    roaster_slugs: Optional[List[str]] = None
    region_ids: Optional[List[str]] = None
    region_slugs: Optional[List[str]] = None
    estate_ids: Optional[List[str]] = None
    estate_keys: Optional[List[str]] = None
    brew_method_ids: Optional[List[str]] = None
    flavor_keys: Optional[List[str]] = None
    canon_flavor_ids: Optional[List[str]] = None
    canon_flavor_slugs: Optional[List[str]] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    in_stock_only: bool = False
    has_250g_only: bool = False
    limited_only: bool = False
    decaf_only: bool = False
    has_sensory_only: bool = False
    works_with_milk: bool = False
    page: int = DEFAULT_PAGE
    sort: SortKey = SortKey.RELEVANCE
    limit: int = PAGE_SIZE

    def __post_init__(self):
        """Normalize so equal intents compare equal and survive a URL round trip."""
        for name in LIST_FIELDS:
            values = getattr(self, name)
            if values is not None:
                setattr(self, name, list(dict.fromkeys(values)) or None)
        if self.text_query is not None:
            self.text_query = self.text_query.strip() or None
        if self.min_price is not None and self.min_price <= 0:
            self.min_price = None
        if self.max_price is not None and self.max_price <= 0:
            self.max_price = None
        self.page = max(DEFAULT_PAGE, self.page)

    @property
    def is_resolved(self) -> bool:
        """True once every public identifier has been translated to IDs."""
        return all(not getattr(self, name) for name in SLUG_FIELDS)

    @property
    def has_filters(self) -> bool:
        """True if any constraint beyond pagination and sort is set."""
        if self.text_query or self.min_price is not None or self.max_price is not None:
            return True
        if any(getattr(self, name) for name in FLAG_FIELDS):
            return True
        return any(getattr(self, name) for name in LIST_FIELDS)

    def cleared(self, names: Iterable[str]) -> "FilterSpec":
        """
        Return a copy with the given fields reset to their defaults.

        Args:
            names: Field names to clear

        Returns:
            New FilterSpec without those constraints
        """
        defaults = {f.name: f.default for f in fields(self)}
        return replace(self, **{name: defaults[name] for name in names})

    def with_updates(self, **changes: Any) -> "FilterSpec":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def filters_only(self) -> "FilterSpec":
        """Return a copy with pagination and sort back at their defaults."""
        return self.cleared(("page", "sort", "limit"))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                value = [v.value if isinstance(v, Enum) else v for v in value]
            elif isinstance(value, Enum):
                value = value.value
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterSpec":
        """Create a FilterSpec from a dictionary produced by to_dict."""
        enum_fields = {
            "roast_levels": RoastLevel,
            "processes": ProcessMethod,
            "statuses": CoffeeStatus,
            "species": BeanSpecies,
        }
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name in enum_fields and value is not None:
                value = [enum_fields[f.name](v) for v in value]
            elif f.name == "sort" and value is not None:
                value = SortKey(value)
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass
class IdentifierLookup:
    """
    Result of resolving public identifiers for one family.

    Attributes:
        requested: Identifiers that were looked up
        resolved: Internal IDs found, keyed by public identifier
    """
    requested: List[str]
    resolved: Dict[str, str] = field(default_factory=dict)

    @property
    def unresolved(self) -> List[str]:
        """Identifiers with no matching entity."""
        return [key for key in self.requested if key not in self.resolved]


ROASTER_LIST_FIELDS = ("roaster_ids", "cities", "states", "countries")


@dataclass
class RoasterFilterSpec:
    """
    The query intent for one roaster directory request.

    Attributes:
        text_query: Free-text match on the roaster name
        roaster_ids: Explicit roaster IDs; replaces text matching when present
        cities: Headquarters cities, any-of
        states: Headquarters states, any-of
        countries: Headquarters countries, any-of, case-insensitive
        active_only: Only roasters marked active
        page: 1-based page number
        sort: Result ordering
        limit: Page size
    """
    text_query: Optional[str] = None
    roaster_ids: Optional[List[str]] = None
    cities: Optional[List[str]] = None
    states: Optional[List[str]] = None
    countries: Optional[List[str]] = None
    active_only: bool = False
    page: int = DEFAULT_PAGE
    sort: RoasterSortKey = RoasterSortKey.RELEVANCE
    limit: int = ROASTER_PAGE_SIZE

    def __post_init__(self):
        for name in ROASTER_LIST_FIELDS:
            values = getattr(self, name)
            if values is not None:
                setattr(self, name, list(dict.fromkeys(values)) or None)
        if self.text_query is not None:
            self.text_query = self.text_query.strip() or None
        # The default country is implied, never stated
        if self.countries and [c.lower() for c in self.countries] == [DEFAULT_ROASTER_COUNTRY]:
            self.countries = None
        self.page = max(DEFAULT_PAGE, self.page)

    @property
    def has_filters(self) -> bool:
        return bool(self.text_query or self.active_only) or any(
            getattr(self, name) for name in ROASTER_LIST_FIELDS
        )

    def with_updates(self, **changes: Any) -> "RoasterFilterSpec":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
