"""Paged column listing fetcher.

All network I/O for column listings goes through a single PagedListFetcher
instance. The fetcher receives an httpx.AsyncClient via constructor
injection; the application lifespan owns the client lifecycle.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import ValidationError

from columnindex.config import DEFAULT_LISTING_URL
from columnindex.errors import ColumnIndexError, ErrorCode
from columnindex.models.articles import ArticleRef, ListingPayload

if TYPE_CHECKING:
    from columnindex.config import RemoteSettings
    from columnindex.models.articles import PageRequest

log = structlog.get_logger()

DEFAULT_PAGE_SIZE = 100
SUCCESS_CODE = 200


def build_http_client(settings: RemoteSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    timeout = settings.timeout_seconds if settings is not None else 30.0
    user_agent = settings.user_agent if settings is not None else "columnindex/1.0"
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent, "Accept": "application/json"},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def page_count(reported_count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Number of pages to request for ``reported_count`` articles.

    Always at least one: the first page is requested even when the page
    reports zero articles, since the reported count is only a hint.
    """
    return max(1, math.ceil(max(reported_count, 0) / page_size))


def _normalise(payload: ListingPayload, request: PageRequest) -> list[ArticleRef]:
    articles: list[ArticleRef] = []
    for position, record in enumerate(payload.data or []):
        if not record.url or record.title is None:
            log.debug(
                "listing_record_skipped",
                column_id=request.key.column_id,
                page=request.page_number,
                position=position,
            )
            continue
        articles.append(ArticleRef(url=record.url, title=record.title.strip()))
    return articles


class PagedListFetcher:
    """Fetches one page of a column listing and normalises it to ArticleRefs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        listing_url: str = DEFAULT_LISTING_URL,
    ) -> None:
        self._client = client
        self._listing_url = listing_url

    def _params(self, request: PageRequest) -> dict[str, str | int]:
        return {
            "columnId": request.key.column_id,
            "blogUsername": request.key.owner_id,
            "page": request.page_number,
            "pageSize": request.page_size,
        }

    async def fetch_page(self, request: PageRequest) -> list[ArticleRef]:
        """Fetch and normalise one page.

        Raises ColumnIndexError on network errors, non-2xx responses,
        payloads that do not match the listing envelope, and envelopes
        reporting a non-success code.
        """
        page_log = log.bind(
            column_id=request.key.column_id,
            owner_id=request.key.owner_id,
            page=request.page_number,
        )
        try:
            response = await self._client.get(self._listing_url, params=self._params(request))
        except httpx.HTTPError as exc:
            raise ColumnIndexError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"Network error fetching page {request.page_number}: {exc}",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise ColumnIndexError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"HTTP {response.status_code} fetching page {request.page_number}",
                recoverable=response.status_code >= 500,
            )

        try:
            payload = ListingPayload.model_validate_json(response.content)
        except ValidationError as exc:
            raise ColumnIndexError(
                code=ErrorCode.PAYLOAD_INVALID,
                message=f"Unexpected listing payload on page {request.page_number}",
                recoverable=False,
            ) from exc

        if payload.code != SUCCESS_CODE:
            raise ColumnIndexError(
                code=ErrorCode.PAGE_REJECTED,
                message=(
                    f"Listing rejected page {request.page_number}: "
                    f"code={payload.code} message={payload.message!r}"
                ),
                recoverable=False,
            )

        articles = _normalise(payload, request)
        page_log.info("page_fetch_complete", articles=len(articles))
        return articles

