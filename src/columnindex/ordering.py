"""Canonical ordering of column articles.

Article URLs end in a numeric id that grows with publication order, e.g.
``https://blog.csdn.net/alice/article/details/135790123``. The canonical
index sorts ascending by that id. URLs whose trailing segment is not an
integer sort after every numeric one, keeping their relative order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from collections.abc import Iterable

    from columnindex.models.articles import ArticleRef


def article_slug(url: str) -> str:
    """Return the last non-empty path segment of ``url``, without query or fragment."""
    path = urlsplit(url).path
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else ""


def parse_article_id(url: str) -> int | None:
    """Parse the trailing numeric id of an article URL, or ``None`` if there is none."""
    slug = article_slug(url)
    # ".html" suffixed article links carry the same id
    if slug.endswith(".html"):
        slug = slug[: -len(".html")]
    if not slug.isascii() or not slug.isdigit():
        return None
    return int(slug)


def _sort_key(article: ArticleRef) -> tuple[int, int]:
    article_id = parse_article_id(article.url)
    if article_id is None:
        return (1, 0)
    return (0, article_id)


def sort_articles(articles: Iterable[ArticleRef]) -> list[ArticleRef]:
    """Return a new list in canonical order. Stable for equal ids."""
    return sorted(articles, key=_sort_key)
