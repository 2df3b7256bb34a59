from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict

from pydantic import BaseModel, ConfigDict, Field


class HeadingRecord(BaseModel):
    """One heading as read from the document, in document order."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str
    level: int = Field(ge=1, le=6)  # Claimed nesting depth, not guaranteed contiguous


class HeadingNodeDict(TypedDict, total=False):
    """Dictionary representation of a heading node."""

    id: str
    title: str
    level: int
    children: list[HeadingNodeDict]


@dataclass
class HeadingNode:
    """Heading tree node. Children are owned exclusively by their parent."""

    id: str
    title: str
    level: int
    children: list[HeadingNode] = field(default_factory=list)

    def to_dict(self) -> HeadingNodeDict:
        """Convert to dictionary for JSON serialization."""
        result: HeadingNodeDict = {"id": self.id, "title": self.title, "level": self.level}
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result
