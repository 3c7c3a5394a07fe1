"""Bounded page-by-page collection over a remote paged list endpoint."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List

from .config import PER_PAGE

PageFetcher = Callable[[int, int], Awaitable[List[Any]]]


async def collect(fetch_page: PageFetcher, page_size: int = PER_PAGE, max_pages: int = 0) -> List[Any]:
    """Retrieve pages until the API runs dry or ``max_pages`` pages were consumed.

    ``fetch_page(page, per_page)`` is awaited with 1-based page numbers in
    order. Collection stops on an empty page, on a page shorter than
    ``page_size``, or once ``max_pages`` pages were read (0 = no cap). Items
    are returned in server order; nothing is sorted or de-duplicated here.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    results: List[Any] = []
    page = 1
    while True:
        if max_pages and page > max_pages:
            break
        batch = await fetch_page(page, page_size)
        if not isinstance(batch, list) or not batch:
            break

        results.extend(batch)

        if len(batch) < page_size:
            break

        page += 1
    return results


__all__ = ["PageFetcher", "collect"]
