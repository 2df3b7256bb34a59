from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

V = TypeVar("V")


class CacheEntry(BaseModel, Generic[V]):
    """Cached payload with its write timestamp (epoch milliseconds)."""

    value: V
    stored_at_ms: int
