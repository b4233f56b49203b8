"""Tests for offset pagination over provider listings."""

import asyncio

import pytest

from tunetransfer.application.utilities import fetch_all_pages
from tunetransfer.domain.entities import Page
from tunetransfer.domain.errors import UpstreamAPIError


def listing(total: int, page_size: int = 50):
    """Page fetcher over ``range(total)`` recording requested offsets."""
    offsets: list[int] = []

    async def fetch(offset: int) -> Page[int]:
        offsets.append(offset)
        return Page(items=list(range(total))[offset : offset + page_size], total=total)

    return fetch, offsets


class TestFetchAllPages:
    """Test completeness of paginated collection."""

    @pytest.mark.asyncio
    async def test_collects_every_item_without_gaps_or_duplicates(self):
        """257 items in pages of 50 arrive complete and in order."""
        fetch, offsets = listing(257)

        items = await fetch_all_pages(fetch)

        assert items == list(range(257))
        assert offsets == [0, 50, 100, 150, 200, 250]

    @pytest.mark.asyncio
    async def test_single_page(self):
        fetch, offsets = listing(7)

        assert await fetch_all_pages(fetch) == list(range(7))
        assert offsets == [0]

    @pytest.mark.asyncio
    async def test_exact_multiple_of_page_size(self):
        fetch, offsets = listing(100)

        assert await fetch_all_pages(fetch) == list(range(100))
        assert offsets == [0, 50]

    @pytest.mark.asyncio
    async def test_empty_listing(self):
        """A zero total stops after the first request."""
        fetch, offsets = listing(0)

        assert await fetch_all_pages(fetch) == []
        assert offsets == [0]


class TestFetchAllPagesHardening:
    """Test that misbehaving listings fail instead of looping."""

    @pytest.mark.asyncio
    async def test_total_change_between_pages(self):
        async def fetch(offset: int) -> Page[int]:
            total = 100 if offset == 0 else 120
            return Page(items=list(range(offset, offset + 50)), total=total)

        with pytest.raises(UpstreamAPIError, match="total changed"):
            await fetch_all_pages(fetch)

    @pytest.mark.asyncio
    async def test_empty_page_before_total_reached(self):
        async def fetch(offset: int) -> Page[int]:
            items = list(range(50)) if offset == 0 else []
            return Page(items=items, total=120)

        with pytest.raises(UpstreamAPIError, match="empty page"):
            await fetch_all_pages(fetch)

    @pytest.mark.asyncio
    async def test_empty_first_page_with_positive_total(self):
        async def fetch(offset: int) -> Page[int]:
            return Page(items=[], total=10)

        with pytest.raises(UpstreamAPIError, match="first page is empty"):
            await fetch_all_pages(fetch)

    @pytest.mark.asyncio
    async def test_more_items_than_total(self):
        async def fetch(offset: int) -> Page[int]:
            return Page(items=list(range(5)), total=3)

        with pytest.raises(UpstreamAPIError, match="received 5 items"):
            await fetch_all_pages(fetch)

    @pytest.mark.asyncio
    async def test_page_budget_exhausted_by_shrinking_pages(self):
        """Pages smaller than the first one cannot stretch the request count."""
        offsets: list[int] = []

        async def fetch(offset: int) -> Page[int]:
            offsets.append(offset)
            size = 50 if offset == 0 else 10
            return Page(items=list(range(offset, offset + size)), total=100)

        with pytest.raises(UpstreamAPIError, match="page budget"):
            await fetch_all_pages(fetch)

        assert offsets == [0, 50]

    @pytest.mark.asyncio
    async def test_page_timeout(self):
        async def fetch(offset: int) -> Page[int]:
            await asyncio.sleep(1)
            return Page(items=[1], total=1)

        with pytest.raises(UpstreamAPIError, match="timed out"):
            await fetch_all_pages(fetch, label="slow", page_timeout=0.01)
