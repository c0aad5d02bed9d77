from datetime import datetime

from pydantic import BaseModel


class FeedEntry(BaseModel):
    """A normalized feed item, not yet bound to a source or stored."""

    guid: str
    title: str
    description: str | None = None
    content: str | None = None
    link: str | None = None
    image_url: str | None = None
    published_at: datetime


class SourceResult(BaseModel):
    source_id: int
    name: str
    items: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchReport(BaseModel):
    results: list[SourceResult] = []

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def total_items(self) -> int:
        return sum(r.items for r in self.results)
