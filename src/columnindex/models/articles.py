from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ArticleRef(BaseModel):
    """One article of a column. ``url`` ends in the numeric article id."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str


class ColumnKey(BaseModel):
    """Composite identity of a remote column listing."""

    model_config = ConfigDict(frozen=True)

    column_id: str
    owner_id: str

    @property
    def cache_key(self) -> str:
        return f"column:{self.owner_id}:{self.column_id}"


class PageRequest(BaseModel):
    """One remote call unit."""

    model_config = ConfigDict(frozen=True)

    key: ColumnKey
    page_number: int = Field(ge=1)
    page_size: int = Field(default=100, ge=1)


class ListingRecord(BaseModel):
    """Single record of the remote listing payload.

    Only ``url`` and ``title`` are read; everything else the remote sends
    (view counts, dates, ...) is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    title: str | None = None


class ListingPayload(BaseModel):
    """Envelope returned by the column listing endpoint."""

    model_config = ConfigDict(extra="ignore")

    code: int
    message: str = ""
    data: list[ListingRecord] | None = None


class ColumnListing(BaseModel):
    """A column as advertised on the article page, before any fetching."""

    url: str
    title: str = ""
    count_text: str = ""  # Raw "123 篇文章" style text, parsed loosely


class Column(BaseModel):
    """A resolved column with its (possibly partial) article index."""

    title: str
    key: ColumnKey
    articles: list[ArticleRef] = []
