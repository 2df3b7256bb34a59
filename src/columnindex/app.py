"""Application wiring and command-line entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the ``open_app`` context manager
- Expose the ``columnindex`` console commands
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog
from pydantic import TypeAdapter

from columnindex import __version__
from columnindex.aggregator import ArticleIndexAggregator
from columnindex.cache import KeyedTTLCache, init_db
from columnindex.columns import ColumnIndexService, parse_article_count, parse_column_url
from columnindex.config import Settings
from columnindex.fetcher import PagedListFetcher, build_http_client
from columnindex.headings import build_heading_tree
from columnindex.models.articles import ArticleRef
from columnindex.parser import parse_headings
from columnindex.spy import ActivationBand
from columnindex.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

log = structlog.get_logger()

ARTICLE_INDEX_ADAPTER: TypeAdapter[list[ArticleRef]] = TypeAdapter(list[ArticleRef])


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout is reserved for command output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def activation_band(settings: Settings) -> ActivationBand:
    return ActivationBand(top=settings.spy.band_top, bottom=settings.spy.band_bottom)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def open_app(settings: Settings | None = None) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the application's lifetime.

    On exit, pending refinement batches are allowed to finish before the
    HTTP client and database are closed.
    """
    settings = settings or Settings()

    db_path = settings.cache.db_path
    if db_path != ":memory:":
        resolved = Path(db_path).expanduser()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        db_path = str(resolved)

    db = await aiosqlite.connect(db_path)
    await init_db(db)
    cache: KeyedTTLCache[list[ArticleRef]] = KeyedTTLCache(
        db, ARTICLE_INDEX_ADAPTER, ttl_hours=settings.cache.ttl_hours
    )
    # Lazy expiry only evicts rows that are read again; drop the rest once per start.
    await cache.purge_expired()

    http_client = build_http_client(settings.remote)
    fetcher = PagedListFetcher(http_client, settings.remote.listing_url)
    aggregator = ArticleIndexAggregator(cache, fetcher, page_size=settings.remote.page_size)

    state = AppState(
        settings=settings,
        http_client=http_client,
        db=db,
        cache=cache,
        fetcher=fetcher,
        aggregator=aggregator,
        columns=ColumnIndexService(aggregator),
    )

    log.info("app_started", version=__version__, db_path=db_path)
    try:
        yield state
    finally:
        await aggregator.drain()
        await http_client.aclose()
        await db.close()
        log.info("app_stopping")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _print_index(index: list[ArticleRef]) -> None:
    payload = ARTICLE_INDEX_ADAPTER.dump_python(index, mode="json")
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def _column_command(args: argparse.Namespace, settings: Settings) -> int:
    key = parse_column_url(args.url)
    if key is None:
        print(f"Not a column URL: {args.url}", file=sys.stderr)
        return 2

    reported_count = parse_article_count(args.count)
    refined: list[list[ArticleRef]] = []

    async with open_app(settings) as state:
        index = await state.aggregator.get_index(key, reported_count, refined.append)
        if not args.wait:
            # Remaining pages still complete and land in the cache on exit.
            _print_index(index)
            return 0
        await state.aggregator.drain()

    _print_index(refined[-1] if refined else index)
    return 0


def _headings_command(args: argparse.Namespace, settings: Settings) -> int:
    content = Path(args.path).read_text(encoding="utf-8")
    forest = build_heading_tree(parse_headings(content))
    output = {
        "root_margin": activation_band(settings).root_margin,
        "headings": [node.to_dict() for node in forest],
    }
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="columnindex",
        description="Build column article indexes and heading trees.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    column = subparsers.add_parser("column", help="Print the article index of a column.")
    column.add_argument("url", help="Column URL, e.g. https://blog.csdn.net/<owner>/category_<id>.html")
    column.add_argument(
        "--count",
        default="0",
        help="Article count shown on the page (loosely parsed, e.g. '128 篇文章').",
    )
    column.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the remaining pages and print the complete index.",
    )

    headings = subparsers.add_parser("headings", help="Print the heading tree of a Markdown file.")
    headings.add_argument("path", help="Markdown file to index.")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(settings)

    if args.command == "column":
        return asyncio.run(_column_command(args, settings))
    return _headings_command(args, settings)


if __name__ == "__main__":
    sys.exit(main())
