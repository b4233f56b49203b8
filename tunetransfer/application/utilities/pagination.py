"""Offset pagination over provider listings.

Drives a single-page request function until the provider's reported total is
reached, producing the complete ordered collection. The loop is bounded: the
first page fixes both the expected total and the page budget, and any
upstream behaviour that would otherwise spin forever is reported as an
``UpstreamAPIError``.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeAlias, TypeVar
import math

from tunetransfer.config import get_logger
from tunetransfer.domain.entities import Page
from tunetransfer.domain.errors import UpstreamAPIError

logger = get_logger(__name__)

T = TypeVar("T")

PageFetcher: TypeAlias = Callable[[int], Awaitable[Page[T]]]


async def _fetch_page(
    fetch_page: PageFetcher[T], offset: int, label: str, page_timeout: float | None
) -> Page[T]:
    if page_timeout is None:
        return await fetch_page(offset)
    try:
        async with asyncio.timeout(page_timeout):
            return await fetch_page(offset)
    except TimeoutError as e:
        raise UpstreamAPIError(
            f"{label}: page at offset {offset} timed out after {page_timeout:g}s"
        ) from e


async def fetch_all_pages(
    fetch_page: PageFetcher[T],
    *,
    label: str = "listing",
    page_timeout: float | None = None,
) -> list[T]:
    """Collect every item of an offset-paginated listing.

    Offsets are zero-based: each request starts right after the last item
    received, so pages neither overlap nor leave gaps.

    Args:
        fetch_page: Async callable returning the page starting at ``offset``
        label: Human readable listing name used in logs and errors
        page_timeout: Optional per-request time limit in seconds

    Returns:
        All items in provider order

    Raises:
        UpstreamAPIError: If the total changes between pages, a page is empty
            before the total is reached, more items arrive than announced, or
            the page budget derived from the first page is exhausted.
    """
    first = await _fetch_page(fetch_page, 0, label, page_timeout)
    total = first.total
    items: list[T] = list(first.items)

    if total < 0:
        raise UpstreamAPIError(f"{label}: negative total {total} reported")

    max_pages = math.ceil(total / len(first.items)) if first.items else 1
    pages = 1

    while len(items) < total:
        if not first.items:
            raise UpstreamAPIError(
                f"{label}: first page is empty but total is {total}"
            )
        if pages >= max_pages:
            raise UpstreamAPIError(
                f"{label}: page budget of {max_pages} exhausted "
                f"with {len(items)}/{total} items"
            )

        offset = len(items)
        page = await _fetch_page(fetch_page, offset, label, page_timeout)
        pages += 1

        if page.total != total:
            raise UpstreamAPIError(
                f"{label}: total changed from {total} to {page.total} during pagination"
            )
        if not page.items:
            raise UpstreamAPIError(
                f"{label}: empty page at offset {offset} with {len(items)}/{total} items"
            )

        items.extend(page.items)

    if len(items) > total:
        raise UpstreamAPIError(
            f"{label}: received {len(items)} items but total is {total}"
        )

    logger.debug(f"Fetched {len(items)} items for {label}", pages=pages, total=total)
    return items
