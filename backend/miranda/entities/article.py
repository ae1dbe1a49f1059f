"""
Article Entity - A discovered piece of content.

Articles accumulate across scans; a scan's queue only references them.
The natural key is `guid` (feed guid, falling back to the link URL).

Collection: articles
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .base import BaseEntity, PyObjectId
from .enums import ArticleStatus, Recommendation


class ArticleScore(BaseModel):
    """Four 1-10 scores, each with an optional short rationale."""

    relevance: int = Field(..., ge=1, le=10)
    relevance_summary: str = ""
    uniqueness: int = Field(..., ge=1, le=10)
    uniqueness_summary: str = ""
    engagement: int = Field(..., ge=1, le=10)
    engagement_summary: str = ""
    credibility: int = Field(..., ge=1, le=10)
    credibility_summary: str = ""

    @property
    def average(self) -> float:
        return (self.relevance + self.uniqueness + self.engagement + self.credibility) / 4


class Article(BaseEntity):
    guid: str = Field(..., description="Deduplication key, globally unique")
    title: str
    url: str
    source_id: Optional[PyObjectId] = Field(None, description="Feed the article came from")
    published_at: datetime

    status: ArticleStatus = ArticleStatus.PENDING

    # Extraction result
    extracted_content: Optional[str] = None

    # Analysis result
    summary: Optional[str] = None
    score: Optional[ArticleScore] = None
    recommendation: Optional[Recommendation] = None
    video_angle: Optional[str] = None
    analyzed_at: Optional[datetime] = None

    error: Optional[str] = None
    slack_notified_at: Optional[datetime] = None

    @property
    def average_score(self) -> Optional[float]:
        return self.score.average if self.score else None
