"""Shared test fixtures for the columnindex test suite."""

from __future__ import annotations

from collections.abc import Callable

import aiosqlite
import pytest
from pydantic import TypeAdapter

from columnindex.cache import KeyedTTLCache, init_db
from columnindex.models.articles import ArticleRef, ColumnKey

T0 = 1_700_000_000_000  # Arbitrary epoch ms used as "now" by FakeClock


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now_ms: int = T0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
async def db() -> aiosqlite.Connection:
    async with aiosqlite.connect(":memory:") as conn:
        await init_db(conn)
        yield conn


@pytest.fixture()
def cache(db: aiosqlite.Connection, clock: FakeClock) -> KeyedTTLCache[list[ArticleRef]]:
    """Article index cache on in-memory SQLite with a controllable clock."""
    return KeyedTTLCache(db, TypeAdapter(list[ArticleRef]), ttl_hours=24, clock=clock)


@pytest.fixture()
def column_key() -> ColumnKey:
    return ColumnKey(column_id="12345678", owner_id="alice")


def _make_article(article_id: int | str, title: str | None = None) -> ArticleRef:
    return ArticleRef(
        url=f"https://blog.csdn.net/alice/article/details/{article_id}",
        title=title or f"Article {article_id}",
    )


@pytest.fixture()
def make_article() -> Callable[..., ArticleRef]:
    """Factory for articles whose URL ends in the given id."""
    return _make_article


@pytest.fixture()
def sample_articles() -> list[ArticleRef]:
    """Three articles in publication order."""
    return [_make_article(101), _make_article(205), _make_article(1300)]
