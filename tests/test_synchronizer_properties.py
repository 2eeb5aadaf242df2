"""
Property-based tests for directory state synchronization.

These tests verify that the store and the address bar converge without
echo loops, and that navigation never produces redundant history writes.
"""

import pytest
from hypothesis import given, settings, strategies as st

from coffee_directory.client import DirectoryStore
from coffee_directory.client.synchronizer import (
    DirectoryStateSynchronizer,
    MemoryAddressBar,
    SyncState,
)
from coffee_directory.models import FilterSpec, RoastLevel, SortKey
from coffee_directory.url_builder import DirectoryURLBuilder

from catalog_fixtures import resolved_filter_specs


builder = DirectoryURLBuilder()


def make_synchronizer(query_string=""):
    store = DirectoryStore()
    address_bar = MemoryAddressBar(query_string)
    return store, address_bar, DirectoryStateSynchronizer(store, address_bar)


@given(spec=resolved_filter_specs())
@settings(max_examples=100)
def test_initialize_never_writes_address(spec):
    """
    **Property 1: Seeding does not touch history**
    """
    store, address_bar, sync = make_synchronizer("roastLevels=dark")

    seeded = sync.initialize(spec)

    assert seeded == spec
    assert store.spec == spec
    assert address_bar.replace_count == 0
    assert address_bar.current() == "roastLevels=dark"
    assert sync.state == SyncState.SYNCHRONIZED


@given(specs=st.lists(resolved_filter_specs(), min_size=1, max_size=8))
@settings(max_examples=100)
def test_store_changes_mirror_into_address(specs):
    """
    **Property 2: The address bar follows the store**

    After any sequence of store writes the address bar holds the canonical
    query string of the store state, and a write happens only when that
    string changes.
    """
    store, address_bar, sync = make_synchronizer()
    sync.initialize(FilterSpec())

    expected_writes = 0
    previous = builder.build_query_string(FilterSpec())
    for spec in specs:
        sync.apply(spec)
        current = builder.build_query_string(store.spec)
        if current != previous:
            expected_writes += 1
        previous = current

    assert address_bar.current() == builder.build_query_string(store.spec)
    assert address_bar.replace_count == expected_writes


@given(spec=resolved_filter_specs())
@settings(max_examples=100)
def test_location_change_is_not_written_back(spec):
    """
    **Property 3: Navigation does not echo**

    Adopting an address change updates the store without replacing the
    history entry the browser just restored.
    """
    store, address_bar, sync = make_synchronizer()
    sync.initialize(FilterSpec())

    query_string = address_bar.push(builder.build_query_string(spec))
    sync.handle_location_change(query_string)

    assert store.spec == builder.parse_query_string(query_string)
    assert address_bar.replace_count == 0


def test_back_and_forward_restore_state():
    store, address_bar, sync = make_synchronizer()
    sync.initialize()

    sync.handle_location_change(address_bar.push("roastLevels=light"))
    sync.handle_location_change(address_bar.push("roastLevels=light&sort=price_asc"))

    assert store.spec.sort == SortKey.PRICE_ASC

    sync.handle_location_change(address_bar.back())
    assert store.spec.roast_levels == [RoastLevel.LIGHT]
    assert store.spec.sort == SortKey.RELEVANCE

    sync.handle_location_change(address_bar.forward())
    assert store.spec.sort == SortKey.PRICE_ASC
    assert address_bar.replace_count == 0


def test_initialize_parses_address_when_no_state_given():
    store, address_bar, sync = make_synchronizer("roastLevels=medium&page=3")

    sync.initialize()

    assert store.spec.roast_levels == [RoastLevel.MEDIUM]
    assert store.spec.page == 3
    assert address_bar.replace_count == 0


def test_filter_change_resets_page_in_address():
    store, address_bar, sync = make_synchronizer()
    sync.initialize(FilterSpec(page=4))

    store.update_filters(roast_levels=[RoastLevel.DARK])

    assert address_bar.current() == "roastLevels=dark"
    assert address_bar.replace_count == 1


def test_unchanged_state_causes_no_write():
    store, address_bar, sync = make_synchronizer()
    sync.initialize(FilterSpec(roast_levels=[RoastLevel.LIGHT]))

    assert sync.apply(FilterSpec(roast_levels=[RoastLevel.LIGHT])) is False
    assert address_bar.replace_count == 0


def test_external_listeners_only_see_navigation():
    store, address_bar, sync = make_synchronizer()
    sync.initialize()
    seen = []
    sync.on_external_change(seen.append)

    store.set_page(2)
    sync.handle_location_change(address_bar.push("sort=newest"))
    sync.handle_location_change(address_bar.current())

    assert [spec.sort for spec in seen] == [SortKey.NEWEST]


def test_operations_require_initialization():
    _, _, sync = make_synchronizer()

    with pytest.raises(ValueError):
        sync.apply(FilterSpec())
    with pytest.raises(ValueError):
        sync.handle_location_change("page=2")


def test_initialize_twice_fails():
    _, _, sync = make_synchronizer()
    sync.initialize()

    with pytest.raises(ValueError):
        sync.initialize()


def test_detach_stops_mirroring():
    store, address_bar, sync = make_synchronizer()
    sync.initialize()
    sync.detach()

    store.set_page(5)

    assert address_bar.replace_count == 0
    assert sync.state == SyncState.UNINITIALIZED
