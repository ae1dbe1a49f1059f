"""DTOs for the feed API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from miranda.entities.feed import Feed


class FeedDTO(BaseModel):
    id: str
    name: str
    xml_url: str
    html_url: str
    type: str
    tags: List[str]
    last_fetched_at: Optional[datetime] = None
    last_error: Optional[str] = None
    fail_count: int = 0

    @classmethod
    def from_entity(cls, feed: Feed) -> "FeedDTO":
        return cls(
            id=str(feed.id),
            name=feed.name,
            xml_url=feed.xml_url,
            html_url=feed.html_url,
            type=feed.type,
            tags=feed.tags,
            last_fetched_at=feed.last_fetched_at,
            last_error=feed.last_error,
            fail_count=feed.fail_count,
        )


class FeedImportItem(BaseModel):
    name: str = Field(..., min_length=1)
    xml_url: str = Field(..., min_length=1)
    html_url: str = ""
    type: str = "rss"
    tags: List[str] = Field(default_factory=list)


class FeedImportRequest(BaseModel):
    feeds: List[FeedImportItem]


class FeedImportResponse(BaseModel):
    created: int
    skipped: int
