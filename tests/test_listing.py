"""
Listing and fan-out tests.

Verifies:
- Truncated listings are drained through every continuation token
- The upper bound and broken tokens raise instead of looping
- gather_bounded keeps order, respects the limit and aborts on failure
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from adapters.local.memory_store import InMemoryObjectStore
from cms.errors.exceptions import ListingLimitError, TransientStoreError
from cms.interfaces.object_store import ListPage, ObjectSummary
from cms.storage.listing import drain_listing, gather_bounded


async def _seed(store, count, prefix="published/blog/"):
    for i in range(count):
        await store.put(f"{prefix}post{i:03d}.md", b"x", "text/plain")


# --- drain_listing ---


async def test_drains_every_page():
    store = InMemoryObjectStore(max_page_size=3)
    await _seed(store, 10)
    await store.put("published/news/other.md", b"x", "text/plain")

    objects = await drain_listing(store, "published/blog/", page_size=1000)

    assert [o.key for o in objects] == [f"published/blog/post{i:03d}.md" for i in range(10)]
    assert sum(1 for op, _ in store.operations if op == "list") == 4


async def test_listing_limit():
    store = InMemoryObjectStore(max_page_size=2)
    await _seed(store, 5)

    with pytest.raises(ListingLimitError):
        await drain_listing(store, "published/blog/", max_keys=3)


class _BrokenPagingStore(InMemoryObjectStore):
    def __init__(self, token):
        super().__init__()
        self.token = token

    async def list_page(self, prefix, continuation_token=None, max_keys=1000):
        return ListPage(
            objects=[ObjectSummary(key=f"{prefix}a")],
            is_truncated=True,
            continuation_token=self.token,
        )


async def test_truncated_without_token():
    with pytest.raises(TransientStoreError):
        await drain_listing(_BrokenPagingStore(token=None), "published/")


async def test_repeated_token():
    with pytest.raises(TransientStoreError):
        await drain_listing(_BrokenPagingStore(token="same"), "published/")


# --- gather_bounded ---


async def test_gather_bounded_keeps_order():
    async def slow_double(n):
        await asyncio.sleep(0.001 * (5 - n))
        return n * 2

    assert await gather_bounded(range(5), slow_double, limit=2) == [0, 2, 4, 6, 8]


async def test_gather_bounded_respects_limit():
    in_flight = 0
    peak = 0

    async def track(_):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.001)
        in_flight -= 1

    await gather_bounded(range(20), track, limit=3)
    assert peak == 3


async def test_gather_bounded_cancels_on_failure():
    finished = []

    async def work(n):
        if n == 0:
            raise RuntimeError("boom")
        await asyncio.sleep(0.05)
        finished.append(n)

    with pytest.raises(RuntimeError, match="boom"):
        await gather_bounded(range(4), work, limit=4)
    assert finished == []


async def test_gather_bounded_empty():
    async def never(_):
        raise AssertionError("not called")

    assert await gather_bounded([], never, limit=4) == []
