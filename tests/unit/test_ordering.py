"""Unit tests for canonical article ordering."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from columnindex.models.articles import ArticleRef
from columnindex.ordering import article_slug, parse_article_id, sort_articles


class TestArticleSlug:
    def test_last_segment(self) -> None:
        assert article_slug("https://blog.csdn.net/alice/article/details/135790123") == "135790123"

    def test_query_and_fragment_ignored(self) -> None:
        url = "https://blog.csdn.net/alice/article/details/42?spm=1001.2014#comments"
        assert article_slug(url) == "42"

    def test_trailing_slash(self) -> None:
        assert article_slug("https://blog.csdn.net/alice/article/details/42/") == "42"

    def test_no_path(self) -> None:
        assert article_slug("https://blog.csdn.net") == ""


class TestParseArticleId:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://blog.csdn.net/alice/article/details/135790123", 135790123),
            ("https://blog.csdn.net/alice/article/details/7?utm=x", 7),
            ("https://blog.csdn.net/alice/article/details/88.html", 88),
            ("https://blog.csdn.net/alice/article/details/draft", None),
            ("https://blog.csdn.net/alice/article/details/12ab", None),
            ("https://blog.csdn.net/alice/article/details/-5", None),
            ("https://blog.csdn.net/alice/article/details/١٢", None),
            ("", None),
        ],
    )
    def test_parse(self, url: str, expected: int | None) -> None:
        assert parse_article_id(url) == expected


class TestSortArticles:
    def test_ascending_by_numeric_id(self, make_article: Callable[..., ArticleRef]) -> None:
        articles = [make_article(300), make_article(20), make_article(1000)]
        assert sort_articles(articles) == [make_article(20), make_article(300), make_article(1000)]

    def test_numeric_not_lexicographic(self, make_article: Callable[..., ArticleRef]) -> None:
        articles = [make_article(9), make_article(10)]
        assert sort_articles(articles) == [make_article(9), make_article(10)]

    def test_unparseable_ids_sort_last_in_input_order(
        self, make_article: Callable[..., ArticleRef]
    ) -> None:
        articles = [
            make_article("zeta"),
            make_article(5),
            make_article("alpha"),
            make_article(1),
        ]
        assert sort_articles(articles) == [
            make_article(1),
            make_article(5),
            make_article("zeta"),
            make_article("alpha"),
        ]

    def test_stable_for_equal_ids(self, make_article: Callable[..., ArticleRef]) -> None:
        first = make_article(7, title="first")
        second = make_article(7, title="second")
        assert sort_articles([second, first]) == [second, first]

    def test_idempotent(self, make_article: Callable[..., ArticleRef]) -> None:
        articles = [make_article(i) for i in (5, "x", 3, 3, 900, "y", 1)]
        once = sort_articles(articles)
        assert sort_articles(once) == once

    def test_returns_new_list(self, sample_articles: list[ArticleRef]) -> None:
        result = sort_articles(sample_articles)
        assert result == sample_articles
        assert result is not sample_articles

    def test_empty(self) -> None:
        assert sort_articles([]) == []
