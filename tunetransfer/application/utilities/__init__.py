"""Application utilities - shared helpers for use cases."""

from .pagination import PageFetcher, fetch_all_pages

__all__ = [
    "PageFetcher",
    "fetch_all_pages",
]
