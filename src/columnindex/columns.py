"""Column discovery and resolution.

An article page advertises the columns it belongs to as links of the form
``https://blog.csdn.net/<owner>/category_<id>.html`` next to a noisy
"N 篇文章" article count. This module turns those listings into resolved
Columns via the aggregator, and locates the current article among them.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import structlog

from columnindex.models.articles import Column, ColumnKey
from columnindex.ordering import article_slug

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from columnindex.aggregator import ArticleIndexAggregator, RefinedCallback
    from columnindex.models.articles import ArticleRef, ColumnListing

    ColumnRefinedCallback = Callable[[Column], Awaitable[None] | None]

log = structlog.get_logger()

_COLUMN_URL_RE = re.compile(r"blog\.csdn\.net/([^/]+)/category_(\d+)\.html")
_DIGITS_RE = re.compile(r"\d+")


def parse_column_url(url: str) -> ColumnKey | None:
    """Extract owner and column id from a column URL, or ``None`` if it does not match."""
    match = _COLUMN_URL_RE.search(url)
    if match is None:
        return None
    return ColumnKey(owner_id=match.group(1), column_id=match.group(2))


def parse_article_count(text: str) -> int:
    """Loosely parse an article count such as ``"128 篇文章"`` or ``"1,024"``.

    Thousands separators are ignored; the first run of digits wins. Text
    without digits counts as zero.
    """
    match = _DIGITS_RE.search(text.replace(",", ""))
    return int(match.group()) if match else 0


def current_article_position(articles: list[ArticleRef], current_url: str) -> int | None:
    """Index of the article at ``current_url`` in ``articles``, matched on the last path segment."""
    current = article_slug(current_url)
    if not current:
        return None
    for position, article in enumerate(articles):
        if article_slug(article.url) == current:
            return position
    return None


def locate_current_column(columns: list[Column], current_url: str) -> int:
    """Index of the last column containing the current article; ``0`` when none does."""
    found = 0
    for position, column in enumerate(columns):
        if current_article_position(column.articles, current_url) is not None:
            found = position
    return found


class ColumnIndexService:
    """Resolves every column listed on a page into a Column with its articles."""

    def __init__(self, aggregator: ArticleIndexAggregator) -> None:
        self._aggregator = aggregator

    async def collect(
        self,
        listings: Iterable[ColumnListing],
        on_refined: ColumnRefinedCallback | None = None,
    ) -> list[Column]:
        """Resolve listings concurrently, in listing order.

        Listings whose URL is not a column URL are dropped. ``on_refined``
        receives a Column again when its complete index arrives.
        """
        resolvable: list[tuple[ColumnListing, ColumnKey]] = []
        for listing in listings:
            key = parse_column_url(listing.url)
            if key is None:
                log.warning("column_url_unparseable", url=listing.url)
                continue
            resolvable.append((listing, key))

        return list(
            await asyncio.gather(
                *(self._resolve(listing, key, on_refined) for listing, key in resolvable)
            )
        )

    async def _resolve(
        self,
        listing: ColumnListing,
        key: ColumnKey,
        on_refined: ColumnRefinedCallback | None,
    ) -> Column:
        title = listing.title.strip()
        reported_count = parse_article_count(listing.count_text)
        log.debug(
            "column_resolving",
            column_id=key.column_id,
            owner_id=key.owner_id,
            reported_count=reported_count,
        )

        refined: RefinedCallback | None = None
        if on_refined is not None:

            def _forward(articles: list[ArticleRef]) -> Awaitable[None] | None:
                return on_refined(Column(title=title, key=key, articles=articles))

            refined = _forward

        articles = await self._aggregator.get_index(key, reported_count, refined)
        return Column(title=title, key=key, articles=articles)
