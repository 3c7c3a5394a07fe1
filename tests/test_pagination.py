"""Tests for release_compare.retrieval.pagination covering stop conditions and caps.

Run with coverage:
    pytest tests/test_pagination.py --maxfail=1 -v --cov=release_compare.retrieval.pagination --cov-report=term-missing
"""

import asyncio

import pytest

from release_compare.retrieval.pagination import collect


def _source(total):
    requested = []

    async def fetch_page(page, per_page):
        requested.append(page)
        start = (page - 1) * per_page
        return list(range(start, min(start + per_page, total)))

    return fetch_page, requested


def test_cap_limits_items_and_requests():
    fetch_page, requested = _source(5000)
    items = asyncio.run(collect(fetch_page, page_size=100, max_pages=10))
    assert len(items) == 1000
    assert requested == list(range(1, 11))
    assert items == list(range(1000))


def test_short_page_stops_collection():
    fetch_page, requested = _source(250)
    items = asyncio.run(collect(fetch_page, page_size=100, max_pages=10))
    assert len(items) == 250
    assert requested == [1, 2, 3]


def test_empty_page_stops_collection():
    fetch_page, requested = _source(200)
    items = asyncio.run(collect(fetch_page, page_size=100))
    assert len(items) == 200
    assert requested == [1, 2, 3]


def test_zero_cap_means_uncapped():
    fetch_page, requested = _source(1234)
    items = asyncio.run(collect(fetch_page, page_size=100, max_pages=0))
    assert len(items) == 1234
    assert requested[-1] == 13


def test_non_list_page_ends_collection():
    async def fetch_page(page, per_page):
        return {"message": "odd"}

    assert asyncio.run(collect(fetch_page, page_size=10)) == []


def test_page_error_propagates():
    async def fetch_page(page, per_page):
        if page == 2:
            raise RuntimeError("page 2 failed")
        return [page] * per_page

    with pytest.raises(RuntimeError):
        asyncio.run(collect(fetch_page, page_size=5))


def test_rejects_non_positive_page_size():
    fetch_page, _ = _source(1)
    with pytest.raises(ValueError):
        asyncio.run(collect(fetch_page, page_size=0))
