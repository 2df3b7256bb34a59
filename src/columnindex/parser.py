"""Heading extraction.

Turns raw heading descriptors into HeadingRecords. Two sources are handled:

* elements read from a live document (``h1``–``h6`` tag, text, optional id),
  see ``record_from_element``;
* Markdown content, see ``parse_headings``. Single-pass algorithm that
  extracts H1–H6 headings, suppressing headings inside fenced code blocks.

Headings without an id get a GitHub-style slug, de-duplicated within one
document by ``-1``, ``-2``, ... suffixes.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from columnindex.models.headings import HeadingRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
_TAG_RE = re.compile(r"^h([1-6])$", re.IGNORECASE)
_SLUG_STRIP_RE = re.compile(r"[^\w\- ]")


def slugify(text: str) -> str:
    """GitHub-style anchor: lowercase, punctuation dropped, spaces to hyphens."""
    slug = _SLUG_STRIP_RE.sub("", text.strip().lower())
    slug = slug.replace(" ", "-")
    return slug or "heading"


def unique_slug(text: str, seen: set[str]) -> str:
    """Slug for ``text`` that is not yet in ``seen``; records the result in ``seen``."""
    base = slugify(text)
    slug = base
    suffix = 0
    while slug in seen:
        suffix += 1
        slug = f"{base}-{suffix}"
    seen.add(slug)
    return slug


def record_from_element(
    tag: str,
    text: str,
    element_id: str | None = None,
    seen_ids: set[str] | None = None,
) -> HeadingRecord:
    """Build a HeadingRecord from a document heading element.

    Raises ValueError if ``tag`` is not ``h1``–``h6``.
    """
    match = _TAG_RE.match(tag.strip())
    if not match:
        raise ValueError(f"Not a heading tag: {tag!r}")
    title = " ".join(text.split())
    seen = seen_ids if seen_ids is not None else set()
    if element_id:
        seen.add(element_id)
        heading_id = element_id
    else:
        heading_id = unique_slug(title, seen)
    return HeadingRecord(id=heading_id, title=title, level=int(match.group(1)))


def records_from_elements(
    elements: Iterable[tuple[str, str, str | None]],
) -> list[HeadingRecord]:
    """Build HeadingRecords for one document from ``(tag, text, element_id)`` triples.

    Ids the elements already carry are reserved up front, so a generated slug
    never collides with an id that appears later in the document.
    """
    items = list(elements)
    seen = {element_id for _, _, element_id in items if element_id}
    return [
        record_from_element(tag, text, element_id, seen) for tag, text, element_id in items
    ]


def parse_headings(content: str) -> list[HeadingRecord]:
    """Extract HeadingRecords from Markdown content, in document order."""
    records: list[HeadingRecord] = []
    seen: set[str] = set()

    in_code_block = False
    fence: str | None = None

    for line in content.splitlines():
        stripped = line.strip()

        # Rule 1: code block tracking
        if stripped.startswith("```") or stripped.startswith("~~~"):
            current_fence = stripped[:3]
            if not in_code_block:
                in_code_block = True
                fence = current_fence
            elif current_fence == fence:
                in_code_block = False
                fence = None
            continue

        if in_code_block:
            continue

        # Rule 2: heading detection (H1–H6)
        match = _HEADING_RE.match(line)
        if not match:
            continue

        title = match.group(2).strip()
        records.append(
            HeadingRecord(id=unique_slug(title, seen), title=title, level=len(match.group(1)))
        )

    return records
