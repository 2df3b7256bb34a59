"""Application state container.

AppState is created once by ``app.open_app`` and handed to every entry point
(CLI commands, embedding hosts). It owns the shared HTTP client and database
connection for the lifetime of the application.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import aiosqlite
    import httpx

    from columnindex.aggregator import ArticleIndexAggregator
    from columnindex.columns import ColumnIndexService
    from columnindex.config import Settings
    from columnindex.models.articles import ArticleRef
    from columnindex.protocols import CacheProtocol, PageFetcherProtocol


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    http_client: httpx.AsyncClient
    db: aiosqlite.Connection
    cache: CacheProtocol[list[ArticleRef]]
    fetcher: PageFetcherProtocol
    aggregator: ArticleIndexAggregator
    columns: ColumnIndexService
