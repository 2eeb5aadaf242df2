"""
Tests for debounced free-text search.

These tests verify that only the settled draft reaches the name-match
oracle and that results for an outdated draft never reach the store.
"""

import asyncio

import pytest

from coffee_directory.client import DebouncedTextSearch, DirectoryStore
from coffee_directory.config import DirectoryConfig
from coffee_directory.models import FilterSpec


DEBOUNCE_MS = 20


class FakeOracle:
    """Name matcher that records queries and answers from a table."""

    def __init__(self, answers=None, gates=None, error=None):
        self.answers = answers or {}
        self.gates = gates or {}
        self.error = error
        self.queries = []
        self.started = asyncio.Event()

    async def match(self, query):
        self.queries.append(query)
        self.started.set()
        if query in self.gates:
            await self.gates[query].wait()
        if self.error is not None:
            raise self.error
        return self.answers.get(query, [])


def recording_store(initial=None):
    store = DirectoryStore(initial)
    changes = []
    store.subscribe(changes.append)
    return store, changes


@pytest.mark.asyncio
async def test_fast_typing_sends_one_query():
    """Typing "ar" then "arabica" inside the window queries only "arabica"."""
    store, changes = recording_store()
    oracle = FakeOracle(answers={"arabica": ["0001", "0004"]})
    search = DebouncedTextSearch(store, oracle, debounce_ms=DEBOUNCE_MS)

    search.on_input("ar")
    await asyncio.sleep(DEBOUNCE_MS / 4000)
    search.on_input("arabica")
    await search.wait_idle()

    assert oracle.queries == ["arabica"]
    assert store.spec.text_query == "arabica"
    assert store.spec.coffee_ids == ["0001", "0004"]
    assert len(changes) == 1


@pytest.mark.asyncio
async def test_stale_oracle_result_is_discarded():
    """A result arriving after the draft moved on never reaches the store."""
    store, changes = recording_store()
    gate = asyncio.Event()
    oracle = FakeOracle(answers={"ara": ["0009"], "arabica": ["0001"]}, gates={"ara": gate})
    search = DebouncedTextSearch(store, oracle, debounce_ms=DEBOUNCE_MS)

    search.on_input("ara")
    await asyncio.wait_for(oracle.started.wait(), timeout=2)
    search.on_input("arabica")
    gate.set()
    await asyncio.wait_for(search.wait_idle(), timeout=2)

    assert oracle.queries == ["ara", "arabica"]
    assert [spec.text_query for spec in changes] == ["arabica"]
    assert store.spec.coffee_ids == ["0001"]


@pytest.mark.asyncio
async def test_commit_applies_immediately():
    """Blur commits the draft without waiting for the debounce window."""
    store, _ = recording_store(FilterSpec(page=3))
    oracle = FakeOracle(answers={"kaapi": ["0002"]})
    search = DebouncedTextSearch(store, oracle, debounce_ms=10000)

    search.on_input("kaapi")
    search.commit()

    assert store.spec.text_query == "kaapi"
    assert store.spec.coffee_ids is None
    assert store.spec.page == 1

    await asyncio.wait_for(search.wait_idle(), timeout=2)

    assert oracle.queries == ["kaapi"]
    assert store.spec.coffee_ids == ["0002"]


@pytest.mark.asyncio
async def test_commit_after_settled_search_is_noop():
    """Blur after the debounced search already applied leaves the store alone."""
    store, changes = recording_store()
    oracle = FakeOracle(answers={"arabica": ["0001", "0002"]})
    search = DebouncedTextSearch(store, oracle, debounce_ms=DEBOUNCE_MS)

    search.on_input("arabica")
    await search.wait_idle()
    assert [spec.coffee_ids for spec in changes] == [["0001", "0002"]]

    search.commit()
    await search.wait_idle()

    assert len(changes) == 1
    assert oracle.queries == ["arabica"]
    assert store.spec.coffee_ids == ["0001", "0002"]


@pytest.mark.asyncio
async def test_commit_of_new_query_drops_previous_ids():
    """Candidate IDs from an older query never outlive a changed query."""
    store, changes = recording_store(FilterSpec(text_query="monsoon", coffee_ids=["0003"]))
    oracle = FakeOracle(answers={"kaapi": ["0002"]})
    search = DebouncedTextSearch(store, oracle, debounce_ms=10000)

    search.on_input("kaapi")
    search.commit()

    assert store.spec.text_query == "kaapi"
    assert store.spec.coffee_ids is None

    await asyncio.wait_for(search.wait_idle(), timeout=2)

    assert [spec.coffee_ids for spec in changes] == [None, ["0002"]]


@pytest.mark.asyncio
async def test_empty_draft_clears_search():
    store, _ = recording_store(FilterSpec(text_query="monsoon", coffee_ids=["0003"]))
    oracle = FakeOracle()
    search = DebouncedTextSearch(store, oracle, debounce_ms=DEBOUNCE_MS)

    assert search.draft == "monsoon"

    search.on_input("   ")
    await search.wait_idle()

    assert oracle.queries == []
    assert store.spec.text_query is None
    assert store.spec.coffee_ids is None


@pytest.mark.asyncio
async def test_oracle_failure_falls_back_to_text_match():
    store, _ = recording_store()
    oracle = FakeOracle(error=ConnectionError("index unavailable"))
    search = DebouncedTextSearch(store, oracle, debounce_ms=DEBOUNCE_MS)

    search.on_input("honey")
    await search.wait_idle()

    assert store.spec.text_query == "honey"
    assert store.spec.coffee_ids is None


@pytest.mark.asyncio
async def test_no_match_keeps_text_query_only():
    store, _ = recording_store()
    search = DebouncedTextSearch(store, FakeOracle(), debounce_ms=DEBOUNCE_MS)

    search.on_input("  geisha ")
    await search.wait_idle()

    assert store.spec.text_query == "geisha"
    assert store.spec.coffee_ids is None


@pytest.mark.asyncio
async def test_sync_from_store_only_when_idle():
    store, _ = recording_store()
    search = DebouncedTextSearch(store, FakeOracle(), debounce_ms=10000)

    search.on_input("pea")
    search.sync_from_store(FilterSpec(text_query="other"))
    assert search.draft == "pea"

    await search.aclose()
    search.sync_from_store(FilterSpec(text_query="other"))
    assert search.draft == "other"
    assert not search.is_pending


@pytest.mark.asyncio
async def test_token_increases_per_keystroke():
    store, _ = recording_store()
    search = DebouncedTextSearch(store, FakeOracle(), debounce_ms=10000)

    for text in ["a", "ar", "ara"]:
        before = search.token
        search.on_input(text)
        assert search.token == before + 1

    await search.aclose()


def test_debounce_from_config():
    search = DebouncedTextSearch.from_config(DirectoryStore(), FakeOracle(), DirectoryConfig(search_debounce_ms=150))

    assert search.debounce_seconds == 0.15
