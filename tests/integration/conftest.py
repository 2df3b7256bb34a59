"""Integration test fixtures.

Provides a fake remote listing API (served through respx) and a fully wired
AppState on in-memory SQLite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import structlog

from columnindex.app import open_app
from columnindex.config import Settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

    from columnindex.state import AppState

OWNER = "alice"
COLUMN_ID = "12345678"
COLUMN_URL = f"https://blog.csdn.net/{OWNER}/category_{COLUMN_ID}.html"


class FakeListingApi:
    """Serves ``total`` articles newest first, paged like the remote listing."""

    def __init__(self, total: int) -> None:
        self.total = total
        self.pages_served: list[int] = []

    def article_ids(self, page: int, page_size: int) -> list[int]:
        newest = self.total - (page - 1) * page_size
        oldest = max(newest - page_size, 0)
        return list(range(newest, oldest, -1))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        assert params["blogUsername"] == OWNER
        assert params["columnId"] == COLUMN_ID
        page = int(params["page"])
        page_size = int(params["pageSize"])
        self.pages_served.append(page)
        data = [
            {
                "url": f"https://blog.csdn.net/{OWNER}/article/details/{article_id}",
                "title": f"Article {article_id}",
                "viewCount": article_id * 3,
            }
            for article_id in self.article_ids(page, page_size)
        ]
        return httpx.Response(200, json={"code": 200, "message": "success", "data": data})


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[None, None, None]:
    """Route structlog output nowhere so command output stays parseable."""
    structlog.configure(
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture()
def settings() -> Settings:
    return Settings(cache={"db_path": ":memory:"})


@pytest.fixture()
async def app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Full AppState wired exactly as the CLI wires it."""
    async with open_app(settings) as state:
        yield state


@pytest.fixture()
def column_url() -> str:
    return COLUMN_URL


@pytest.fixture()
def listing_api() -> type[FakeListingApi]:
    """The fake listing API class; instantiate with the column's article total."""
    return FakeListingApi
