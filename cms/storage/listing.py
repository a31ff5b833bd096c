"""
Listing and fan-out helpers.

drain_listing follows continuation tokens until a listing is exhausted,
with an upper bound so a runaway prefix cannot grow memory without limit.

gather_bounded runs one coroutine per item with at most `limit` in flight,
so large collections don't exceed the store's connection budget.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from cms.errors.exceptions import ListingLimitError, TransientStoreError
from cms.interfaces.object_store import ObjectStore, ObjectSummary

logger = logging.getLogger("cms.listing")

T = TypeVar("T")
R = TypeVar("R")


async def drain_listing(
    store: ObjectStore,
    prefix: str,
    page_size: int = 1000,
    max_keys: int = 100_000,
) -> list[ObjectSummary]:
    """
    List every key under `prefix`, page by page.

    Raises:
        ListingLimitError: More than max_keys keys under the prefix
        TransientStoreError: The store reported truncation without a usable token
    """
    objects: list[ObjectSummary] = []
    seen_tokens: set[str] = set()
    token: Optional[str] = None
    pages = 0

    while True:
        page = await store.list_page(prefix, continuation_token=token, max_keys=page_size)
        pages += 1
        objects.extend(page.objects)

        if len(objects) > max_keys:
            raise ListingLimitError(
                f"Listing under '{prefix}' exceeded the listing limit of {max_keys} keys"
            )
        if not page.is_truncated:
            break

        token = page.continuation_token
        if not token:
            raise TransientStoreError(
                f"Listing under '{prefix}' was truncated without a continuation token"
            )
        if token in seen_tokens:
            raise TransientStoreError(
                f"Listing under '{prefix}' returned a repeated continuation token"
            )
        seen_tokens.add(token)

    logger.debug(f"[list:{prefix}] {len(objects)} keys in {pages} page(s)")
    return objects


async def gather_bounded(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
    limit: int,
) -> list[R]:
    """
    Apply `fn` to every item concurrently, at most `limit` at a time.

    Results keep input order. On the first failure every other task is
    cancelled and the original exception is re-raised unchanged.
    """
    semaphore = asyncio.Semaphore(limit)

    async def run(item: T) -> R:
        async with semaphore:
            return await fn(item)

    tasks = [asyncio.ensure_future(run(item)) for item in items]
    if not tasks:
        return []

    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
