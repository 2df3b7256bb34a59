"""Column article index aggregation.

Orchestrates cache lookup / first-page fetch / background fetch of the
remaining pages, and delivers the complete, canonically sorted index through
a refinement callback. No presentation imports: the caller owns every piece
of view state and just receives article lists.

Flow for a cache miss on a column reported to hold 250 articles::

    get_index ──► page 1 ──► returned immediately (partial)
                    └─► background: pages 2, 3 (gathered)
                              └─► merge + sort ──► cache write ──► on_refined
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from columnindex.errors import ColumnIndexError
from columnindex.fetcher import DEFAULT_PAGE_SIZE, page_count
from columnindex.models.articles import ArticleRef, PageRequest
from columnindex.ordering import sort_articles

if TYPE_CHECKING:
    from columnindex.models.articles import ColumnKey
    from columnindex.protocols import CacheProtocol, PageFetcherProtocol

log = structlog.get_logger()

RefinedCallback = Callable[[list[ArticleRef]], Awaitable[None] | None]


class ArticleIndexAggregator:
    """Builds the article index of a column from the cache or the remote listing.

    Callers are expected to de-duplicate concurrent ``get_index`` calls for
    the same column; two overlapping calls both fetch and both write the
    cache (harmless, the results are identical).
    """

    def __init__(
        self,
        cache: CacheProtocol[list[ArticleRef]],
        fetcher: PageFetcherProtocol,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._page_size = page_size
        # Strong references keep fire-and-forget batches alive until they finish.
        self._background: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of refinement batches still running."""
        return len(self._background)

    def _request(self, key: ColumnKey, page_number: int) -> PageRequest:
        return PageRequest(key=key, page_number=page_number, page_size=self._page_size)

    async def get_index(
        self,
        key: ColumnKey,
        reported_count: int,
        on_refined: RefinedCallback | None = None,
    ) -> list[ArticleRef]:
        """Return the best index available now; push the complete one later.

        A cache hit is returned as-is with no network activity. On a miss the
        first page is returned as soon as it arrives; when more pages exist,
        they are fetched in the background and ``on_refined`` receives the
        merged, sorted index once. Never raises for remote or cache failures.
        """
        index_log = log.bind(column_id=key.column_id, owner_id=key.owner_id)

        cached = await self._cache.get(key.cache_key)
        if cached is not None:
            index_log.info("cache_hit", articles=len(cached))
            return cached

        total_pages = page_count(reported_count, self._page_size)
        index_log.info("cache_miss_fetching", reported_count=reported_count, pages=total_pages)

        # None marks a failed page, as opposed to a page with no articles
        first_page = await self._fetch_or_none(self._request(key, 1))

        if total_pages == 1:
            index = sort_articles(first_page or [])
            if first_page is not None:
                await self._cache.set(key.cache_key, index)
            return index

        task = asyncio.create_task(
            self._refine(key, first_page, total_pages, on_refined),
            name=f"refine:{key.cache_key}",
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

        return sort_articles(first_page or [])

    async def _fetch_or_none(self, request: PageRequest) -> list[ArticleRef] | None:
        try:
            return await self._fetcher.fetch_page(request)
        except ColumnIndexError as exc:
            log.warning(
                "page_fetch_failed",
                column_id=request.key.column_id,
                owner_id=request.key.owner_id,
                page=request.page_number,
                code=exc.code,
                message=exc.message,
                recoverable=exc.recoverable,
            )
            return None
        except Exception:
            log.warning(
                "page_fetch_unexpected_error",
                column_id=request.key.column_id,
                owner_id=request.key.owner_id,
                page=request.page_number,
                exc_info=True,
            )
            return None

    async def _refine(
        self,
        key: ColumnKey,
        first_page: list[ArticleRef] | None,
        total_pages: int,
        on_refined: RefinedCallback | None,
    ) -> None:
        """Fetch pages 2..N together, merge with page 1, cache and notify.

        Fire-and-forget: all exceptions are caught and logged.
        """
        refine_log = log.bind(column_id=key.column_id, owner_id=key.owner_id)
        refine_log.info("index_refine_started", pages=total_pages)
        try:
            remaining = await asyncio.gather(
                *(
                    self._fetch_or_none(self._request(key, page_number))
                    for page_number in range(2, total_pages + 1)
                )
            )
            pages = [first_page, *remaining]
            succeeded = [page for page in pages if page is not None]
            failed = len(pages) - len(succeeded)

            index = sort_articles(article for page in succeeded for article in page)

            if succeeded:
                await self._cache.set(key.cache_key, index)
            else:
                refine_log.warning("index_refine_all_pages_failed", pages=total_pages)

            refine_log.info(
                "index_refined",
                articles=len(index),
                pages=total_pages,
                failed_pages=failed,
            )
        except Exception:
            refine_log.warning("index_refine_failed", exc_info=True)
            return

        if on_refined is not None:
            await _notify(on_refined, index, key)

    async def drain(self) -> None:
        """Wait for every pending refinement batch to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)


async def _notify(
    callback: RefinedCallback,
    index: list[ArticleRef],
    key: ColumnKey,
) -> None:
    try:
        result = callback(index)
        if inspect.isawaitable(result):
            await result
    except Exception:
        log.warning(
            "refined_callback_error",
            column_id=key.column_id,
            owner_id=key.owner_id,
            exc_info=True,
        )
