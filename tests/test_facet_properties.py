"""
Property-based tests for the facet engine.

These tests verify self-exclusion: every bucket counts the rows matching all
filters except the bucket's own dimension.
"""

import asyncio

import pytest
from hypothesis import given, settings

from coffee_directory.catalog.dimensions import DIMENSIONS, FacetDimension
from coffee_directory.catalog.facets import FacetEngine
from coffee_directory.catalog.fetcher import ResultFetcher
from coffee_directory.catalog.predicate import build_predicate
from coffee_directory.error_handling import CatalogQueryError
from coffee_directory.filtering import ROAST_LEVEL_LABELS
from coffee_directory.models import FilterSpec, RoastLevel
from coffee_directory.schemas import EntityFacetBucket, ValueFacetBucket
from coffee_directory.storage import InMemoryCatalogStore

from catalog_fixtures import ENTITIES, catalog_items, make_item, resolved_filter_specs


class RecordingStore(InMemoryCatalogStore):
    """In-memory store that records which operations were called."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []

    async def fetch_rows(self, predicate, columns):
        self.calls.append("fetch_rows")
        return await super().fetch_rows(predicate, columns)

    async def fetch_join_rows(self, join, item_ids):
        self.calls.append("fetch_join_rows")
        return await super().fetch_join_rows(join, item_ids)

    async def count_active_roasters(self, item_ids):
        self.calls.append("count_active_roasters")
        return await super().count_active_roasters(item_ids)


def expected_counts(items, spec, dimension):
    """Brute-force tally of one dimension with its own filter removed."""
    dim = DIMENSIONS[dimension]
    predicate = build_predicate(spec.cleared(dim.filter_fields))
    counts = {}
    for item in items:
        if not predicate.matches(item):
            continue
        if dim.is_relational:
            values = set(item[dim.join.tag_column])
        else:
            values = {item[dim.column]} if item[dim.column] is not None else set()
        for value in values:
            counts[value] = counts.get(value, 0) + 1
    return counts


def bucket_key(bucket):
    return bucket.value if isinstance(bucket, ValueFacetBucket) else bucket.id


@given(items=catalog_items(), spec=resolved_filter_specs())
@settings(max_examples=100, deadline=None)
def test_self_exclusion_counts(items, spec):
    """
    **Property 1: Self-exclusion correctness**

    For every dimension D and value v, the bucket count equals the number of
    rows matching all filters except D that carry v.
    """
    engine = FacetEngine(InMemoryCatalogStore(items, ENTITIES))

    for dimension in FacetDimension:
        buckets = asyncio.run(engine.count(spec, dimension))
        actual = {bucket_key(b): b.count for b in buckets}

        assert actual == expected_counts(items, spec, dimension), \
            f"Counts for {dimension.value} do not match a direct tally"


@given(items=catalog_items(), spec=resolved_filter_specs())
@settings(max_examples=100, deadline=None)
def test_categorical_buckets_sum_to_excluded_total(items, spec):
    """
    **Property 2: Categorical buckets partition the excluded set**

    For single-valued dimensions, bucket counts sum to the number of rows that
    match with D excluded and have a value for D.
    """
    engine = FacetEngine(InMemoryCatalogStore(items, ENTITIES))

    for dimension in (FacetDimension.ROAST_LEVELS, FacetDimension.STATUSES, FacetDimension.ROASTERS):
        dim = DIMENSIONS[dimension]
        predicate = build_predicate(spec, exclude=dimension)
        expected = sum(1 for item in items if predicate.matches(item) and item[dim.column] is not None)
        buckets = asyncio.run(engine.count(spec, dimension))

        assert sum(b.count for b in buckets) == expected


@given(items=catalog_items(), spec=resolved_filter_specs())
@settings(max_examples=100, deadline=None)
def test_buckets_sorted_and_non_empty(items, spec):
    """
    **Property 3: Buckets are non-empty and ordered by count, then label**
    """
    meta = asyncio.run(FacetEngine(InMemoryCatalogStore(items, ENTITIES)).compute(spec))

    for name, buckets in meta.model_dump().items():
        if name == "totals":
            continue
        counts = [b["count"] for b in buckets]
        assert all(c > 0 for c in counts), f"{name} has an empty bucket"
        keys = [(-b["count"], b["label"].lower()) for b in buckets]
        assert keys == sorted(keys), f"{name} buckets are out of order"


@given(items=catalog_items(), spec=resolved_filter_specs())
@settings(max_examples=100, deadline=None)
def test_totals_match_list_total(items, spec):
    """
    **Property 4: Totals agree with the result list**
    """
    store = InMemoryCatalogStore(items, ENTITIES)
    meta = asyncio.run(FacetEngine(store).compute(spec))
    page = asyncio.run(ResultFetcher(store).fetch(spec))

    assert meta.totals.coffees == page.total
    predicate = build_predicate(spec)
    active = {i["roaster_id"] for i in items if predicate.matches(i) and i["roaster_is_active"]}
    assert meta.totals.roasters == len(active)


def test_medium_roast_in_stock_scenario():
    """120 coffees, 45 medium of which 30 in stock; roast counts ignore the roast filter."""
    items = []
    layout = [("medium", 30, 15), ("light", 25, 15), ("dark", 10, 25)]
    for roast, in_stock, out_of_stock in layout:
        for n in range(in_stock + out_of_stock):
            items.append(make_item(
                f"{roast}-{n:03d}",
                roast_level=roast,
                in_stock_count=1 if n < in_stock else 0,
                process="natural" if n % 2 else "washed",
            ))
    assert len(items) == 120

    store = InMemoryCatalogStore(items, ENTITIES)
    spec = FilterSpec(roast_levels=[RoastLevel.MEDIUM], in_stock_only=True)

    page = asyncio.run(ResultFetcher(store).fetch(spec))
    meta = asyncio.run(FacetEngine(store).compute(spec))

    assert page.total == 30
    roast_counts = {b.value: b.count for b in meta.roast_levels}
    assert roast_counts == {"medium": 30, "light": 25, "dark": 10}
    assert sum(roast_counts.values()) > page.total
    assert [b.value for b in meta.roast_levels] == ["medium", "light", "dark"]
    assert meta.roast_levels[0].label == ROAST_LEVEL_LABELS["medium"]
    # Other dimensions keep the roast filter
    assert sum(b.count for b in meta.processes) == 30
    assert meta.totals.coffees == 30


def test_empty_base_short_circuits():
    """An empty filtered set returns empty meta without per-dimension queries."""
    store = RecordingStore([make_item("1", roast_level="dark")], ENTITIES)
    spec = FilterSpec(roast_levels=[RoastLevel.LIGHT], processes=["natural"])

    meta = asyncio.run(FacetEngine(store).compute(spec))

    assert store.calls == ["fetch_rows"], f"Unexpected queries: {store.calls}"
    assert meta.totals.coffees == 0
    assert meta.totals.roasters == 0
    assert meta.roast_levels == []
    assert meta.regions == []


def test_relational_buckets_carry_labels_and_slugs():
    items = [
        make_item("1", region_ids=["g1", "g2"], flavor_keys=["berry"]),
        make_item("2", region_ids=["g1"], flavor_keys=["berry", "citrus"]),
    ]
    meta = asyncio.run(FacetEngine(InMemoryCatalogStore(items, ENTITIES)).compute(FilterSpec()))

    assert meta.regions == [
        EntityFacetBucket(id="g1", label="Chikmagalur", count=2, slug="chikmagalur"),
        EntityFacetBucket(id="g2", label="Coorg", count=1, slug="coorg"),
    ]
    assert meta.flavor_notes == [
        EntityFacetBucket(id="berry", label="Berry", count=2),
        EntityFacetBucket(id="citrus", label="Citrus", count=1),
    ]
    assert meta.roasters == [
        EntityFacetBucket(id="r1", label="Blue Tokai", count=2, slug="blue-tokai"),
    ]


def test_ties_sorted_by_label():
    items = [make_item("1", process="washed"), make_item("2", process="natural"), make_item("3", process="honey")]
    buckets = asyncio.run(FacetEngine(InMemoryCatalogStore(items, ENTITIES)).count(FilterSpec(), FacetDimension.PROCESSES))

    assert [b.label for b in buckets] == ["Honey", "Natural", "Washed"]


@pytest.mark.asyncio
async def test_failing_dimension_fails_whole_meta():
    """One failing tally aborts the computation and cancels its siblings."""
    cancelled = []

    class FailingStore(InMemoryCatalogStore):
        async def fetch_join_rows(self, join, item_ids):
            if join.name == "coffee_estates":
                raise ConnectionError("estates join failed")
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.append(join.name)
                raise
            return await super().fetch_join_rows(join, item_ids)

    store = FailingStore([make_item("1", region_ids=["g1"])], ENTITIES)

    with pytest.raises(CatalogQueryError) as exc_info:
        await asyncio.wait_for(FacetEngine(store).compute(FilterSpec()), timeout=2)

    assert exc_info.value.stage == "facets"
    assert exc_info.value.dimension == "estates"
    assert "coffee_regions" in cancelled, "Sibling tallies should be cancelled"


@pytest.mark.asyncio
async def test_compute_subset_of_dimensions():
    store = InMemoryCatalogStore([make_item("1"), make_item("2", roast_level="dark")], ENTITIES)

    meta = await FacetEngine(store).compute(FilterSpec(), [FacetDimension.ROAST_LEVELS])

    assert {b.value for b in meta.roast_levels} == {"medium", "dark"}
    assert meta.processes == []
    assert meta.totals.coffees == 2
