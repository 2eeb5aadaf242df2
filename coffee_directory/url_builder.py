"""
URL serialization for the coffee directory.

This module converts coffee and roaster filter intents to and from the flat
query string that lives in the browser address bar, so that directory views
can be shared and restored.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Type
from enum import Enum
from urllib.parse import parse_qsl, urlencode

from coffee_directory.models import (
    BeanSpecies,
    CoffeeStatus,
    DEFAULT_PAGE,
    FilterSpec,
    PAGE_SIZE,
    ProcessMethod,
    ROASTER_PAGE_SIZE,
    RoastLevel,
    RoasterFilterSpec,
    RoasterSortKey,
    SortKey,
)


logger = logging.getLogger(__name__)


# FilterSpec field -> query parameter, in serialization order
LIST_PARAMS: Tuple[Tuple[str, str], ...] = (
    ("roast_levels", "roastLevels"),
    ("processes", "processes"),
    ("statuses", "status"),
    ("species", "species"),
    ("flavor_keys", "flavor_keys"),
    ("roaster_ids", "roaster_ids"),
    ("roaster_slugs", "roaster_slugs"),
    ("region_ids", "region_ids"),
    ("region_slugs", "region_slugs"),
    ("estate_ids", "estate_ids"),
    ("estate_keys", "estate_keys"),
    ("brew_method_ids", "brew_method_ids"),
    ("canon_flavor_ids", "canon_flavor_ids"),
    ("canon_flavor_slugs", "canon_flavor_slugs"),
    ("coffee_ids", "coffee_ids"),
)

FLAG_PARAMS: Tuple[Tuple[str, str], ...] = (
    ("in_stock_only", "inStockOnly"),
    ("has_250g_only", "has250gOnly"),
    ("limited_only", "limitedOnly"),
    ("decaf_only", "decafOnly"),
    ("has_sensory_only", "hasSensoryOnly"),
    ("works_with_milk", "worksWithMilk"),
)

# Older parameter spellings still found in shared links
READ_ALIASES: Dict[str, str] = {
    "roast_levels": "roastLevels",
    "statuses": "status",
    "bean_species": "species",
    "flavorKeys": "flavor_keys",
    "roasterIds": "roaster_ids",
    "roasterSlugs": "roaster_slugs",
    "regionIds": "region_ids",
    "regionSlugs": "region_slugs",
    "estateIds": "estate_ids",
    "estateKeys": "estate_keys",
    "brewMethodIds": "brew_method_ids",
    "canonFlavorIds": "canon_flavor_ids",
    "canonFlavorSlugs": "canon_flavor_slugs",
    "coffeeIds": "coffee_ids",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "in_stock_only": "inStockOnly",
    "has_250g_only": "has250gOnly",
    "limited_only": "limitedOnly",
    "decaf_only": "decafOnly",
    "has_sensory_only": "hasSensoryOnly",
    "works_with_milk": "worksWithMilk",
}

ENUM_FIELDS: Dict[str, Type[Enum]] = {
    "roast_levels": RoastLevel,
    "processes": ProcessMethod,
    "statuses": CoffeeStatus,
    "species": BeanSpecies,
}


def _split_list(raw: Optional[str]) -> List[str]:
    """Split a comma-joined value, trimming and de-duplicating entries."""
    if not raw:
        return []
    seen = []
    for part in raw.split(","):
        part = part.strip()
        if part and part not in seen:
            seen.append(part)
    return seen


def _parse_enum_list(raw: Optional[str], enum_type: Type[Enum]) -> List[Enum]:
    """Parse a list of enum values, dropping anything unrecognized."""
    values = []
    for part in _split_list(raw):
        try:
            values.append(enum_type(part))
        except ValueError:
            logger.debug(f"Dropping unknown {enum_type.__name__} value: {part}")
    return values


def _parse_positive_int(raw: Optional[str]) -> Optional[int]:
    """Parse a strictly positive integer, or None."""
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def _parse_page(raw: Optional[str]) -> int:
    """Parse a page number, clamping anything invalid to the first page."""
    if raw is None:
        return DEFAULT_PAGE
    raw = raw.strip()
    try:
        page = int(raw)
    except ValueError:
        return DEFAULT_PAGE
    return page if page >= DEFAULT_PAGE else DEFAULT_PAGE


def _parse_sort(raw: Optional[str], sort_type: Type[Enum] = SortKey) -> Enum:
    """Parse a sort key, falling back to relevance."""
    if not raw:
        return sort_type.RELEVANCE
    try:
        return sort_type(raw.strip())
    except ValueError:
        return sort_type.RELEVANCE


def _query_params(query_string: Optional[str], aliases: Mapping[str, str]) -> Optional[Dict[str, str]]:
    """Split a query string into a parameter mapping, or None if malformed."""
    if query_string is None:
        return {}
    try:
        pairs = parse_qsl(query_string.lstrip("?"), keep_blank_values=False, strict_parsing=False)
    except (ValueError, UnicodeError) as e:
        logger.warning(f"Malformed query string, using defaults: {e}")
        return None
    params: Dict[str, str] = {}
    for key, value in pairs:
        key = aliases.get(key, key)
        # Last occurrence wins, matching URLSearchParams.set semantics
        params[key] = value
    return params


def _format_value(value) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class DirectoryURLBuilder:
    """Serializes FilterSpec objects to and from query strings.

    The encoding is flat: list values are comma-joined, ranges are decimal
    strings, boolean flags are "1" when set and absent otherwise. Default
    pagination and sort values are omitted so that equivalent views share a
    single canonical query string.
    """

    BASE_PATH = "/coffees"

    def build_query_string(self, spec: FilterSpec) -> str:
        """Serialize a FilterSpec to its canonical query string.

        Args:
            spec: Filter intent to serialize

        Returns:
            Query string without the leading "?" (empty for the default view)

        Examples:
            >>> builder = DirectoryURLBuilder()
            >>> builder.build_query_string(FilterSpec(roast_levels=[RoastLevel.LIGHT], page=2))
            'roastLevels=light&page=2'
        """
        params: List[Tuple[str, str]] = []

        if spec.text_query:
            params.append(("q", spec.text_query))

        for name, param in LIST_PARAMS:
            values = getattr(spec, name)
            if values:
                params.append((param, ",".join(_format_value(v) for v in values)))

        if spec.min_price is not None:
            params.append(("minPrice", str(spec.min_price)))
        if spec.max_price is not None:
            params.append(("maxPrice", str(spec.max_price)))

        for name, param in FLAG_PARAMS:
            if getattr(spec, name):
                params.append((param, "1"))

        if spec.page != DEFAULT_PAGE:
            params.append(("page", str(spec.page)))
        if spec.sort != SortKey.RELEVANCE:
            params.append(("sort", spec.sort.value))

        return urlencode(params, safe=",")

    def build_directory_url(self, spec: FilterSpec) -> str:
        """Build the directory path with the serialized filters appended."""
        query_string = self.build_query_string(spec)
        if not query_string:
            return self.BASE_PATH
        return f"{self.BASE_PATH}?{query_string}"

    def parse_query_string(self, query_string: str) -> FilterSpec:
        """Parse a query string into a FilterSpec.

        Unknown enum values and non-positive prices are dropped, the page is
        clamped to at least 1, an unknown sort falls back to relevance and
        the page size is always the fixed constant. A query string that
        cannot be parsed at all yields the empty FilterSpec.

        Args:
            query_string: Raw query string, with or without a leading "?"

        Returns:
            Parsed FilterSpec
        """
        params = _query_params(query_string, READ_ALIASES)
        if params is None:
            return FilterSpec()
        return self.parse_params(params)

    def parse_params(self, params: Mapping[str, str]) -> FilterSpec:
        """Build a FilterSpec from an already-split parameter mapping.

        Args:
            params: Parameter name to raw value

        Returns:
            Parsed FilterSpec
        """
        kwargs = {}

        text = params.get("q")
        if text and text.strip():
            kwargs["text_query"] = text.strip()

        for name, param in LIST_PARAMS:
            raw = params.get(param)
            if name in ENUM_FIELDS:
                values: Sequence = _parse_enum_list(raw, ENUM_FIELDS[name])
            else:
                values = _split_list(raw)
            if values:
                kwargs[name] = list(values)

        kwargs["min_price"] = _parse_positive_int(params.get("minPrice"))
        kwargs["max_price"] = _parse_positive_int(params.get("maxPrice"))

        for name, param in FLAG_PARAMS:
            kwargs[name] = params.get(param) == "1"

        kwargs["page"] = _parse_page(params.get("page"))
        kwargs["sort"] = _parse_sort(params.get("sort"))
        kwargs["limit"] = PAGE_SIZE

        return FilterSpec(**kwargs)


ROASTER_LIST_PARAMS: Tuple[Tuple[str, str], ...] = (
    ("roaster_ids", "roaster_ids"),
    ("cities", "cities"),
    ("states", "states"),
    ("countries", "countries"),
)

ROASTER_READ_ALIASES: Dict[str, str] = {
    "roasterIds": "roaster_ids",
    "active_only": "activeOnly",
}


class RoasterURLBuilder:
    """Serializes RoasterFilterSpec objects to and from query strings.

    Uses the same flat encoding as the coffee directory. The default country
    is never written, so an unfiltered view keeps an empty query string.
    """

    BASE_PATH = "/roasters"

    def build_query_string(self, spec: RoasterFilterSpec) -> str:
        """Serialize a RoasterFilterSpec to its canonical query string.

        Examples:
            >>> RoasterURLBuilder().build_query_string(RoasterFilterSpec(cities=["Bengaluru"], active_only=True))
            'cities=Bengaluru&activeOnly=1'
        """
        params: List[Tuple[str, str]] = []

        if spec.text_query:
            params.append(("q", spec.text_query))

        for name, param in ROASTER_LIST_PARAMS:
            values = getattr(spec, name)
            if values:
                params.append((param, ",".join(values)))

        if spec.active_only:
            params.append(("activeOnly", "1"))
        if spec.page != DEFAULT_PAGE:
            params.append(("page", str(spec.page)))
        if spec.sort != RoasterSortKey.RELEVANCE:
            params.append(("sort", spec.sort.value))

        return urlencode(params, safe=",")

    def build_directory_url(self, spec: RoasterFilterSpec) -> str:
        query_string = self.build_query_string(spec)
        if not query_string:
            return self.BASE_PATH
        return f"{self.BASE_PATH}?{query_string}"

    def parse_query_string(self, query_string: str) -> RoasterFilterSpec:
        """Parse a query string into a RoasterFilterSpec.

        Invalid pages clamp to 1, an unknown sort falls back to relevance and
        the page size is fixed. A malformed query string yields the empty
        RoasterFilterSpec.
        """
        params = _query_params(query_string, ROASTER_READ_ALIASES)
        if params is None:
            return RoasterFilterSpec()

        kwargs = {}
        text = params.get("q")
        if text and text.strip():
            kwargs["text_query"] = text.strip()
        for name, param in ROASTER_LIST_PARAMS:
            values = _split_list(params.get(param))
            if values:
                kwargs[name] = values
        kwargs["active_only"] = params.get("activeOnly") == "1"
        kwargs["page"] = _parse_page(params.get("page"))
        kwargs["sort"] = _parse_sort(params.get("sort"), RoasterSortKey)
        kwargs["limit"] = ROASTER_PAGE_SIZE

        return RoasterFilterSpec(**kwargs)
