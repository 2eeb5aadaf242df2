"""
Facet counting with self-exclusion.

The count shown next to a filter value answers "how many coffees would match
if I also picked this value". For a dimension D that means evaluating the
current filters with D's own constraint removed and every other constraint
kept, then tallying D's values over that set.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from coffee_directory.catalog.concurrency import gather_fail_fast
from coffee_directory.catalog.dimensions import DIMENSIONS, DimensionSpec, FacetDimension
from coffee_directory.catalog.predicate import Predicate, build_predicate
from coffee_directory.error_handling.exceptions import CatalogError, CatalogQueryError
from coffee_directory.filtering.labels import label_for
from coffee_directory.models import FilterSpec
from coffee_directory.schemas.filter_meta import (
    EntityFacetBucket,
    FilterMeta,
    FilterMetaTotals,
    ValueFacetBucket,
)
from coffee_directory.storage.base import CatalogStore


logger = logging.getLogger(__name__)

FacetBucket = Union[ValueFacetBucket, EntityFacetBucket]

ALL_DIMENSIONS: Tuple[FacetDimension, ...] = tuple(FacetDimension)


def _sort_buckets(buckets: Iterable[FacetBucket]) -> List[FacetBucket]:
    """Order by count descending, then label ascending."""
    def key(bucket):
        identity = bucket.value if isinstance(bucket, ValueFacetBucket) else bucket.id
        return (-bucket.count, bucket.label.lower(), bucket.label, identity)
    return sorted(buckets, key=key)


class FacetEngine:
    """Computes facet buckets for every filterable dimension."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def count(self, spec: FilterSpec, dimension: FacetDimension) -> List[FacetBucket]:
        """
        Compute the buckets of one dimension.

        Args:
            spec: Resolved filter intent
            dimension: Dimension to tally; its own constraint is ignored

        Returns:
            Non-empty buckets sorted by count descending, then label

        Raises:
            CatalogQueryError: If a storage query fails
        """
        return await self._count(spec, dimension)

    async def compute(
        self,
        spec: FilterSpec,
        dimensions: Optional[Sequence[FacetDimension]] = None,
    ) -> FilterMeta:
        """
        Compute buckets for all requested dimensions plus totals.

        The fully filtered set is evaluated first. If it is empty, an empty
        FilterMeta is returned without running per-dimension work. Otherwise
        every dimension is tallied concurrently; any failure aborts the whole
        computation and cancels the remaining tallies.

        Args:
            spec: Resolved filter intent
            dimensions: Dimensions to compute (default: all)

        Returns:
            FilterMeta with one bucket list per dimension
        """
        dimensions = tuple(dimensions) if dimensions is not None else ALL_DIMENSIONS
        base_predicate = build_predicate(spec)
        base_ids = await self._matching_ids(base_predicate, stage="base")

        if not base_ids:
            logger.info("Filtered set is empty, skipping facet computation")
            return FilterMeta()

        base = (base_predicate, base_ids)
        results = await gather_fail_fast(
            *(self._count(spec, dimension, base) for dimension in dimensions),
            self._count_roasters(base_ids),
        )

        meta = FilterMeta(
            totals=FilterMetaTotals(coffees=len(base_ids), roasters=results[-1])
        )
        for dimension, buckets in zip(dimensions, results[:-1]):
            setattr(meta, _FIELD_NAMES[dimension], buckets)
        return meta

    async def _count(
        self,
        spec: FilterSpec,
        dimension: FacetDimension,
        base: Optional[Tuple[Predicate, List[str]]] = None,
    ) -> List[FacetBucket]:
        dim = DIMENSIONS[dimension]
        predicate = build_predicate(spec, exclude=dimension)
        try:
            if dim.is_relational:
                if base is not None and base[0] == predicate:
                    item_ids = base[1]
                else:
                    item_ids = await self._matching_ids(predicate, stage="facets")
                buckets = await self._tally_join(dim, item_ids)
            else:
                rows = await self.store.fetch_rows(predicate, dim.read_columns)
                buckets = self._tally_column(dim, rows)
        except CatalogQueryError as e:
            if e.dimension is None:
                e.dimension = dimension.value
            raise
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Facet query for {dimension.value} failed: {e}")
            raise CatalogQueryError(str(e), stage="facets", dimension=dimension.value) from e
        return _sort_buckets(buckets)

    async def _matching_ids(self, predicate: Predicate, stage: str) -> List[str]:
        try:
            rows = await self.store.fetch_rows(predicate, ())
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Catalog {stage} query failed: {e}")
            raise CatalogQueryError(str(e), stage=stage) from e
        return [row["coffee_id"] for row in rows]

    async def _count_roasters(self, item_ids: List[str]) -> int:
        try:
            return await self.store.count_active_roasters(item_ids)
        except CatalogError:
            raise
        except Exception as e:
            logger.error(f"Roaster total query failed: {e}")
            raise CatalogQueryError(str(e), stage="totals") from e

    async def _tally_join(self, dim: DimensionSpec, item_ids: List[str]) -> List[FacetBucket]:
        if not item_ids:
            return []
        join_rows = await self.store.fetch_join_rows(dim.join, item_ids)

        members: Dict[str, Set[str]] = {}
        labels: Dict[str, str] = {}
        keys: Dict[str, Optional[str]] = {}
        for row in join_rows:
            members.setdefault(row.value, set()).add(row.item_id)
            if row.value not in labels:
                labels[row.value] = row.label or row.value
                keys[row.value] = row.key

        return [
            EntityFacetBucket(
                id=value,
                label=labels[value],
                count=len(items),
                slug=None if dim.join.by_key else keys[value],
            )
            for value, items in members.items()
            if items
        ]

    def _tally_column(self, dim: DimensionSpec, rows: List[dict]) -> List[FacetBucket]:
        counts: Dict[str, int] = {}
        labels: Dict[str, str] = {}
        slugs: Dict[str, Optional[str]] = {}
        for row in rows:
            value = row.get(dim.column)
            if value is None:
                continue
            value = str(value)
            counts[value] = counts.get(value, 0) + 1
            if value not in labels:
                if dim.label_column:
                    labels[value] = row.get(dim.label_column) or value
                else:
                    labels[value] = label_for(dim.labels or {}, value)
                slugs[value] = row.get(dim.slug_column) if dim.slug_column else None

        if dim.has_entity_buckets:
            return [
                EntityFacetBucket(id=value, label=labels[value], count=count, slug=slugs[value])
                for value, count in counts.items()
            ]
        return [
            ValueFacetBucket(value=value, label=labels[value], count=count)
            for value, count in counts.items()
        ]


_FIELD_NAMES: Dict[FacetDimension, str] = {
    FacetDimension.ROAST_LEVELS: "roast_levels",
    FacetDimension.PROCESSES: "processes",
    FacetDimension.STATUSES: "statuses",
    FacetDimension.SPECIES: "species",
    FacetDimension.ROASTERS: "roasters",
    FacetDimension.REGIONS: "regions",
    FacetDimension.ESTATES: "estates",
    FacetDimension.BREW_METHODS: "brew_methods",
    FacetDimension.FLAVOR_NOTES: "flavor_notes",
    FacetDimension.CANONICAL_FLAVORS: "canonical_flavors",
}
