"""
Paginated, sorted catalog listing.
"""

import logging
import math
from typing import Dict, Tuple

from coffee_directory.catalog.predicate import PRICE_COLUMN, build_predicate
from coffee_directory.error_handling.exceptions import CatalogError, CatalogQueryError
from coffee_directory.models import FilterSpec, SortKey
from coffee_directory.schemas.catalog import CatalogItem, CatalogPage
from coffee_directory.storage.base import CatalogStore, OrderTerm


logger = logging.getLogger(__name__)


SORT_ORDERS: Dict[SortKey, Tuple[OrderTerm, ...]] = {
    SortKey.RELEVANCE: (OrderTerm("name"),),
    SortKey.NAME_ASC: (OrderTerm("name"),),
    SortKey.PRICE_ASC: (OrderTerm(PRICE_COLUMN, descending=False, nulls_last=True),),
    SortKey.PRICE_DESC: (OrderTerm(PRICE_COLUMN, descending=True, nulls_last=True),),
    SortKey.NEWEST: (OrderTerm("coffee_id", descending=True),),
    SortKey.RATING_DESC: (
        OrderTerm("rating_avg", descending=True, nulls_last=True),
        OrderTerm("rating_count", descending=True, nulls_last=True),
    ),
    SortKey.BEST_VALUE: (
        OrderTerm(PRICE_COLUMN, descending=False, nulls_last=True),
        OrderTerm("rating_avg", descending=True, nulls_last=True),
    ),
}

# Appended to every ordering so equal sort keys page deterministically
TIE_BREAKER = OrderTerm("coffee_id")


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for ``total`` items; 0 for an empty result."""
    if total <= 0 or limit <= 0:
        return 0
    return math.ceil(total / limit)


def order_for(sort: SortKey) -> Tuple[OrderTerm, ...]:
    """Full ordering for a sort key, tie-breaker included."""
    terms = SORT_ORDERS.get(sort, SORT_ORDERS[SortKey.RELEVANCE])
    if any(term.column == TIE_BREAKER.column for term in terms):
        return terms
    return terms + (TIE_BREAKER,)


class ResultFetcher:
    """Fetches one page of the filtered, sorted catalog."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def fetch(self, spec: FilterSpec) -> CatalogPage:
        """
        Fetch the requested page.

        Args:
            spec: Resolved filter intent

        Returns:
            CatalogPage with items, page, limit, total and totalPages

        Raises:
            CatalogQueryError: If the storage query fails
        """
        predicate = build_predicate(spec)
        offset = (spec.page - 1) * spec.limit

        try:
            rows, total = await self.store.fetch_page(
                predicate, order_for(spec.sort), offset, spec.limit
            )
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Catalog list query failed: {e}")
            raise CatalogQueryError(str(e), stage="list") from e

        logger.debug(f"Fetched {len(rows)} of {total} coffees (page {spec.page})")

        return CatalogPage(
            items=[CatalogItem.model_validate(row) for row in rows],
            page=spec.page,
            limit=spec.limit,
            total=total,
            total_pages=total_pages(total, spec.limit),
        )
