"""
Roaster directory queries.

Lists roasters with aggregate stats over their coffees and counts the
headquarters location facets with the same self-exclusion rule as the coffee
facets: each location facet is tallied with its own filter removed.
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from coffee_directory.catalog.concurrency import gather_fail_fast
from coffee_directory.catalog.fetcher import total_pages
from coffee_directory.catalog.predicate import (
    Clause,
    FlagTrue,
    Predicate,
    TextMatch,
    ValueIn,
    ValueInIgnoreCase,
)
from coffee_directory.error_handling.exceptions import CatalogError, CatalogQueryError
from coffee_directory.models import DEFAULT_ROASTER_COUNTRY, RoasterFilterSpec, RoasterSortKey
from coffee_directory.schemas.filter_meta import ValueFacetBucket
from coffee_directory.schemas.roasters import (
    RoasterFilterMeta,
    RoasterFilterMetaTotals,
    RoasterPage,
    RoasterSummary,
)
from coffee_directory.storage.base import CatalogStore, OrderTerm


logger = logging.getLogger(__name__)


class RoasterFacet(str, Enum):
    """Filterable roaster location dimension."""
    CITIES = "cities"
    STATES = "states"
    COUNTRIES = "countries"


FACET_COLUMNS: Dict[RoasterFacet, str] = {
    RoasterFacet.CITIES: "hq_city",
    RoasterFacet.STATES: "hq_state",
    RoasterFacet.COUNTRIES: "hq_country",
}

ROASTER_TIE_BREAKER = OrderTerm("id")

ROASTER_SORT_ORDERS: Dict[RoasterSortKey, Tuple[OrderTerm, ...]] = {
    RoasterSortKey.RELEVANCE: (OrderTerm("name"),),
    RoasterSortKey.NAME_ASC: (OrderTerm("name"),),
    RoasterSortKey.NAME_DESC: (OrderTerm("name", descending=True),),
    RoasterSortKey.COFFEE_COUNT_DESC: (OrderTerm("coffee_count", descending=True), OrderTerm("name")),
    RoasterSortKey.RATING_DESC: (OrderTerm("avg_rating", descending=True), OrderTerm("name")),
    RoasterSortKey.NEWEST: (OrderTerm("created_at", descending=True),),
}


def roaster_order_for(sort: RoasterSortKey) -> Tuple[OrderTerm, ...]:
    """Sort terms for a roaster listing, ending in the id tie-breaker."""
    return ROASTER_SORT_ORDERS.get(sort, ROASTER_SORT_ORDERS[RoasterSortKey.RELEVANCE]) + (ROASTER_TIE_BREAKER,)


def build_roaster_predicate(
    spec: RoasterFilterSpec,
    exclude: Optional[RoasterFacet] = None,
) -> Predicate:
    """
    Build the predicate for a roaster filter intent.

    Explicit roaster IDs replace the name match. Without a country filter the
    listing is limited to roasters based in the default country or with no
    country on record.

    Args:
        spec: Roaster filter intent
        exclude: Location facet whose own constraint is dropped

    Returns:
        Predicate over the roaster relation
    """
    clauses: List[Clause] = []

    if spec.roaster_ids:
        clauses.append(ValueIn("id", tuple(spec.roaster_ids)))
    elif spec.text_query:
        clauses.append(TextMatch("name", spec.text_query))

    if spec.cities and exclude != RoasterFacet.CITIES:
        clauses.append(ValueIn("hq_city", tuple(spec.cities)))
    if spec.states and exclude != RoasterFacet.STATES:
        clauses.append(ValueIn("hq_state", tuple(spec.states)))
    if exclude != RoasterFacet.COUNTRIES:
        if spec.countries:
            clauses.append(ValueInIgnoreCase("hq_country", tuple(spec.countries)))
        else:
            clauses.append(ValueInIgnoreCase("hq_country", (DEFAULT_ROASTER_COUNTRY,), or_null=True))

    if spec.active_only:
        clauses.append(FlagTrue("is_active"))

    return Predicate(tuple(clauses))


class RoasterDirectory:
    """Roaster listing and location facets over a catalog store."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def fetch(self, spec: RoasterFilterSpec) -> RoasterPage:
        """
        Fetch one page of roasters. Only active roasters are listed.

        Raises:
            CatalogQueryError: If the storage query fails
        """
        predicate = build_roaster_predicate(replace(spec, active_only=True))
        offset = (spec.page - 1) * spec.limit

        try:
            rows, total = await self.store.fetch_roaster_page(
                predicate, roaster_order_for(spec.sort), offset, spec.limit
            )
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Roaster list query failed: {e}")
            raise CatalogQueryError(str(e), stage="roasters") from e

        logger.debug(f"Fetched {len(rows)} of {total} roasters (page {spec.page})")

        return RoasterPage(
            items=[RoasterSummary.model_validate(row) for row in rows],
            page=spec.page,
            limit=spec.limit,
            total=total,
            total_pages=total_pages(total, spec.limit),
        )

    async def count(self, spec: RoasterFilterSpec, facet: RoasterFacet) -> List[ValueFacetBucket]:
        """
        Tally one location facet with its own filter removed.

        Returns:
            Non-empty buckets sorted by count descending, then label
        """
        column = FACET_COLUMNS[facet]
        predicate = build_roaster_predicate(spec, exclude=facet)
        try:
            rows = await self.store.fetch_roaster_rows(predicate, (column,))
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Roaster facet query for {facet.value} failed: {e}")
            raise CatalogQueryError(str(e), stage="roaster_facets", dimension=facet.value) from e

        counts: Dict[str, int] = {}
        for row in rows:
            value = row.get(column)
            if value:
                counts[value] = counts.get(value, 0) + 1

        buckets = [ValueFacetBucket(value=value, label=value, count=count) for value, count in counts.items()]
        return sorted(buckets, key=lambda b: (-b.count, b.label.lower(), b.label))

    async def filter_meta(self, spec: RoasterFilterSpec) -> RoasterFilterMeta:
        """
        Compute location facets and totals for the filters in ``spec``.

        An empty filtered set short-circuits to empty meta. Otherwise the
        facets are counted concurrently and any failure cancels the rest.
        """
        try:
            base_rows = await self.store.fetch_roaster_rows(build_roaster_predicate(spec), ("is_active",))
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Roaster base query failed: {e}")
            raise CatalogQueryError(str(e), stage="roaster_base") from e

        if not base_rows:
            logger.info("Filtered roaster set is empty, skipping facet computation")
            return RoasterFilterMeta()

        facets = tuple(RoasterFacet)
        results = await gather_fail_fast(*(self.count(spec, facet) for facet in facets))

        return RoasterFilterMeta(
            totals=RoasterFilterMetaTotals(
                roasters=len(base_rows),
                active_roasters=sum(1 for row in base_rows if row.get("is_active") is True),
            ),
            **{facet.value: buckets for facet, buckets in zip(facets, results)},
        )
