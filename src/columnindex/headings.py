"""Heading tree builder.

Converts the flat, document-ordered heading sequence of an article into a
forest of HeadingNodes. Source levels are not trusted to be contiguous: a
heading always becomes a child of the nearest preceding heading with a
strictly lower level, so ``h1 -> h3`` nests the h3 directly under the h1 and
no input sequence is ever rejected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from columnindex.models.headings import HeadingNode

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from columnindex.models.headings import HeadingRecord


def build_heading_tree(headings: Iterable[HeadingRecord]) -> list[HeadingNode]:
    """Build a heading forest in a single left-to-right pass.

    Keeps a stack of open ancestors seeded with a level-0 sentinel; for each
    heading, ancestors at the same or a deeper level are closed, the heading
    is appended to the remaining top, then opened itself.
    """
    sentinel = HeadingNode(id="", title="", level=0)
    stack: list[HeadingNode] = [sentinel]

    for heading in headings:
        node = HeadingNode(id=heading.id, title=heading.title, level=heading.level)
        while stack[-1].level >= node.level:
            stack.pop()
        stack[-1].children.append(node)
        stack.append(node)

    return sentinel.children


def iter_render_order(forest: list[HeadingNode]) -> Iterator[tuple[int, HeadingNode]]:
    """Yield ``(depth, node)`` in document (pre-)order; roots have depth 0."""
    pending: list[tuple[int, HeadingNode]] = [(0, root) for root in reversed(forest)]
    while pending:
        depth, node = pending.pop()
        yield depth, node
        pending.extend((depth + 1, child) for child in reversed(node.children))


def find_path(forest: list[HeadingNode], heading_id: str) -> list[HeadingNode]:
    """Return the root-to-node path to ``heading_id``, or ``[]`` if absent.

    The presentation layer expands every node on this path so the active
    heading is visible in a collapsed tree.
    """
    path: list[HeadingNode] = []
    for depth, node in iter_render_order(forest):
        del path[depth:]
        path.append(node)
        if node.id == heading_id:
            return path
    return []
