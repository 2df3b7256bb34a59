"""Scroll-spy: which heading is currently being read.

The host (a browser bridge, a TUI pager, a test) reports heading visibility
and the spy keeps one "active heading id" cell. Only ``observe`` writes the
cell; everyone else reads it or subscribes to changes. Subscribers are
called synchronously on the host's loop and must not block.

Visibility arrives either as IntersectionObserver-style batches
(``observe``) or as raw layout geometry (``observe_layout``). A heading
counts as visible when it sits inside the activation band, by default the
upper fifth of the viewport.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from columnindex.headings import iter_render_order

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from columnindex.models.headings import HeadingNode, HeadingRecord

log = structlog.get_logger()

ActiveCallback = Callable[[str], None]


def _margin(fraction: float) -> str:
    return "0%" if fraction == 0 else f"-{fraction * 100:g}%"


@dataclass(frozen=True)
class ActivationBand:
    """Vertical band of the viewport, as fractions of its height from the top."""

    top: float = 0.0
    bottom: float = 0.2

    def __post_init__(self) -> None:
        if not 0.0 <= self.top <= self.bottom <= 1.0:
            raise ValueError(f"Invalid activation band: top={self.top} bottom={self.bottom}")

    @property
    def root_margin(self) -> str:
        """CSS ``rootMargin`` that shrinks an IntersectionObserver root to this band."""
        return f"{_margin(self.top)} 0px {_margin(1.0 - self.bottom)} 0px"

    def contains(self, offset: float, viewport_height: float) -> bool:
        """Whether a heading ``offset`` pixels below the viewport top is inside the band."""
        return self.top * viewport_height <= offset <= self.bottom * viewport_height


@dataclass(frozen=True)
class IntersectionEntry:
    """One visibility observation reported by the host."""

    target_id: str
    is_intersecting: bool


class ViewportSpy:
    """Tracks the active heading of one attached heading sequence."""

    def __init__(self, heading_ids: Iterable[str], band: ActivationBand | None = None) -> None:
        self._order: list[str] = list(dict.fromkeys(heading_ids))
        self._tracked: set[str] = set(self._order)
        self._band = band or ActivationBand()
        self._active_id: str | None = None
        self._subscribers: list[ActiveCallback] = []
        self._queues: list[asyncio.Queue[str | None]] = []
        self._attached = True

    @classmethod
    def attach(
        cls,
        headings: Iterable[HeadingRecord],
        forest: list[HeadingNode] | None = None,
        band: ActivationBand | None = None,
    ) -> ViewportSpy:
        """Start tracking ``headings``.

        When ``forest`` is given, only headings that are nodes of it are
        tracked, so every active id can be located in the rendered tree.
        """
        ids = [heading.id for heading in headings]
        if forest is not None:
            in_tree = {node.id for _, node in iter_render_order(forest)}
            ids = [heading_id for heading_id in ids if heading_id in in_tree]
        spy = cls(ids, band)
        log.debug("spy_attached", headings=len(spy._order), root_margin=spy.band.root_margin)
        return spy

    @property
    def band(self) -> ActivationBand:
        return self._band

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def attached(self) -> bool:
        return self._attached

    def observe(self, entries: Iterable[IntersectionEntry]) -> str | None:
        """Apply one observation batch and return the active id.

        The last intersecting tracked entry of the batch wins. Entries that
        stop intersecting never clear the active heading: the one scrolled
        past most recently stays active until another enters the band.
        """
        if not self._attached:
            return self._active_id

        candidate: str | None = None
        for entry in entries:
            if entry.is_intersecting and entry.target_id in self._tracked:
                candidate = entry.target_id

        if candidate is not None and candidate != self._active_id:
            self._set_active(candidate)
        return self._active_id

    def observe_layout(self, viewport_height: float, offsets: Mapping[str, float]) -> str | None:
        """Apply layout geometry: ``offsets`` maps heading id to its distance from the viewport top."""
        entries = [
            IntersectionEntry(
                target_id=heading_id,
                is_intersecting=self._band.contains(offsets[heading_id], viewport_height),
            )
            for heading_id in self._order
            if heading_id in offsets
        ]
        return self.observe(entries)

    def subscribe(self, callback: ActiveCallback) -> Callable[[], None]:
        """Call ``callback`` with every new active id. Returns an unsubscribe function."""
        if not self._attached:
            return lambda: None
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def changes(self) -> AsyncIterator[str]:
        """Iterate over active id changes until the spy is detached.

        The iterator receives every change made after this call returns,
        including changes made before it is first awaited.
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue()
        if self._attached:
            self._queues.append(queue)
        else:
            queue.put_nowait(None)  # end of stream
        return self._iter_queue(queue)

    async def _iter_queue(self, queue: asyncio.Queue[str | None]) -> AsyncIterator[str]:
        try:
            while True:
                item = await queue.get()
                if item is None:
                    return
                yield item
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def _set_active(self, heading_id: str) -> None:
        previous = self._active_id
        self._active_id = heading_id
        log.debug("spy_active_changed", previous=previous, active=heading_id)
        for callback in list(self._subscribers):
            try:
                callback(heading_id)
            except Exception:
                log.warning("spy_subscriber_error", active=heading_id, exc_info=True)
        for queue in self._queues:
            queue.put_nowait(heading_id)

    def detach(self) -> None:
        """Stop tracking; drops subscribers and ends every ``changes()`` iterator."""
        if not self._attached:
            return
        self._attached = False
        self._subscribers.clear()
        for queue in self._queues:
            queue.put_nowait(None)  # end of stream
        self._queues.clear()
        self._tracked.clear()
        self._order.clear()
        self._active_id = None
        log.debug("spy_detached")

    def __enter__(self) -> ViewportSpy:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.detach()
