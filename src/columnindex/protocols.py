"""Protocol interfaces for swappable components.

The aggregator and AppState reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory implementations
- Other stores (e.g. a browser-side key/value bridge) to be swapped in
  without changing aggregation code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from columnindex.models.articles import ArticleRef, PageRequest

V = TypeVar("V")


class CacheProtocol(Protocol[V]):
    """Interface for the keyed TTL cache."""

    async def get(self, key: str) -> V | None: ...

    async def set(self, key: str, value: V) -> None: ...

    async def remove(self, key: str) -> None: ...


class PageFetcherProtocol(Protocol):
    """Interface for the paged listing fetcher."""

    async def fetch_page(self, request: PageRequest) -> list[ArticleRef]: ...
