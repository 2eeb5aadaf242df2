"""
Tests for fail-fast fan-out.
"""

import asyncio

import pytest
from hypothesis import given, settings, strategies as st

from coffee_directory.catalog.concurrency import gather_fail_fast


@given(values=st.lists(st.integers(), max_size=10), delays=st.lists(st.sampled_from([0, 0.001, 0.002]), max_size=10))
@settings(max_examples=50, deadline=None)
def test_results_in_argument_order(values, delays):
    """
    **Property 1: Results keep argument order regardless of completion order**
    """
    async def produce(value, delay):
        await asyncio.sleep(delay)
        return value

    async def run():
        return await gather_fail_fast(
            *(produce(v, delays[i % len(delays)] if delays else 0) for i, v in enumerate(values))
        )

    assert asyncio.run(run()) == values


@pytest.mark.asyncio
async def test_first_failure_cancels_siblings():
    cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    async def failing():
        await asyncio.sleep(0.01)
        raise ValueError("dimension failed")

    with pytest.raises(ValueError, match="dimension failed"):
        await asyncio.wait_for(gather_fail_fast(slow(), failing()), timeout=2)

    assert cancelled.is_set(), "Outstanding sibling should be cancelled"


@pytest.mark.asyncio
async def test_caller_cancellation_propagates_to_children():
    started = asyncio.Event()
    cancelled = []

    async def child(name):
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(name)
            raise

    task = asyncio.ensure_future(gather_fail_fast(child("a"), child("b")))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert sorted(cancelled) == ["a", "b"]


@pytest.mark.asyncio
async def test_no_awaitables():
    assert await gather_fail_fast() == []
