from __future__ import annotations

from columnindex.models.articles import (
    ArticleRef,
    Column,
    ColumnKey,
    ColumnListing,
    ListingPayload,
    ListingRecord,
    PageRequest,
)
from columnindex.models.cache import CacheEntry
from columnindex.models.headings import HeadingNode, HeadingNodeDict, HeadingRecord

__all__ = [
    # articles
    "ArticleRef",
    "ColumnKey",
    "PageRequest",
    "ListingRecord",
    "ListingPayload",
    "ColumnListing",
    "Column",
    # cache
    "CacheEntry",
    # headings
    "HeadingRecord",
    "HeadingNode",
    "HeadingNodeDict",
]
