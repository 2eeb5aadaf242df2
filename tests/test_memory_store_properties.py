"""
Tests for the in-memory catalog store.
"""

import asyncio
import json

from hypothesis import given, settings, strategies as st

from coffee_directory.catalog.dimensions import DIMENSIONS, FacetDimension
from coffee_directory.catalog.predicate import Predicate
from coffee_directory.storage import InMemoryCatalogStore, JoinRow, OrderTerm
from coffee_directory.storage.memory import sort_rows

from catalog_fixtures import ENTITIES, make_item


@given(values=st.lists(st.one_of(st.none(), st.integers(min_value=0, max_value=50)), max_size=20),
       descending=st.booleans())
@settings(max_examples=100)
def test_sort_rows_places_nulls_last(values, descending):
    """
    **Property 1: NULLs sort after every value in either direction**
    """
    rows = [{"coffee_id": f"{i:03d}", "price": v} for i, v in enumerate(values)]

    ordered = sort_rows(rows, [OrderTerm("price", descending=descending), OrderTerm("coffee_id")])
    prices = [row["price"] for row in ordered]
    present = [p for p in prices if p is not None]

    assert prices == present + [None] * (len(prices) - len(present))
    assert present == sorted(present, reverse=descending)


def test_sort_rows_secondary_key_breaks_ties():
    rows = [{"coffee_id": "b", "price": 1}, {"coffee_id": "a", "price": 1}, {"coffee_id": "c", "price": 0}]

    ordered = sort_rows(rows, [OrderTerm("price"), OrderTerm("coffee_id")])

    assert [row["coffee_id"] for row in ordered] == ["c", "a", "b"]


def test_snapshot_loading(tmp_path):
    snapshot = tmp_path / "catalog.json"
    snapshot.write_text(json.dumps({
        "items": [make_item("1", region_ids=["g2"]), make_item("2")],
        "entities": ENTITIES,
    }), encoding="utf-8")

    store = InMemoryCatalogStore.from_snapshot(str(snapshot))

    assert len(store.items) == 2
    rows = asyncio.run(store.fetch_join_rows(DIMENSIONS[FacetDimension.REGIONS].join, ["1", "2"]))
    assert rows == [JoinRow(item_id="1", value="g2", label="Coorg", key="coorg")]


def test_join_rows_by_key_for_flavor_notes():
    store = InMemoryCatalogStore([make_item("1", flavor_keys=["berry", "unknown"])], ENTITIES)

    rows = asyncio.run(store.fetch_join_rows(DIMENSIONS[FacetDimension.FLAVOR_NOTES].join, ["1", "missing"]))

    assert rows == [
        JoinRow(item_id="1", value="berry", label="Berry", key="berry"),
        JoinRow(item_id="1", value="unknown", label=None, key="unknown"),
    ]


def test_fetch_rows_always_includes_id():
    store = InMemoryCatalogStore([make_item("1"), make_item("2", roast_level="dark")], ENTITIES)

    rows = asyncio.run(store.fetch_rows(Predicate(()), ["roast_level"]))

    assert rows == [
        {"coffee_id": "1", "roast_level": "medium"},
        {"coffee_id": "2", "roast_level": "dark"},
    ]


def test_count_active_roasters_skips_inactive():
    items = [
        make_item("1", roaster_id="r1"),
        make_item("2", roaster_id="r1"),
        make_item("3", roaster_id="r2", roaster_is_active=False),
        make_item("4", roaster_id="r3"),
    ]
    store = InMemoryCatalogStore(items, ENTITIES)

    assert asyncio.run(store.count_active_roasters(["1", "2", "3", "4"])) == 2
    assert asyncio.run(store.count_active_roasters([])) == 0


def test_unknown_roaster_activity_not_counted():
    """A missing or null activity flag counts as inactive, like IS TRUE."""
    missing = make_item("1", roaster_id="r1")
    del missing["roaster_is_active"]
    items = [missing, make_item("2", roaster_id="r2", roaster_is_active=None), make_item("3", roaster_id="r3")]
    store = InMemoryCatalogStore(items, ENTITIES)

    assert asyncio.run(store.count_active_roasters(["1", "2", "3"])) == 1


def test_search_index_ordered_by_name():
    items = [make_item("1", name="Peaberry"), make_item("2", name="Attikan", flavor_keys=["citrus"])]
    store = InMemoryCatalogStore(items, ENTITIES)

    index = asyncio.run(store.fetch_search_index())

    assert [entry["name"] for entry in index] == ["Attikan", "Peaberry"]
    assert index[0]["flavor_keys"] == ["citrus"]
    assert index[0]["roaster_name"] == "Blue Tokai"
