"""DTOs for the article API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from miranda.entities.article import Article, ArticleScore


class ArticleDTO(BaseModel):
    id: str
    guid: str
    title: str
    url: str
    source_id: Optional[str] = None
    published_at: datetime
    status: str
    summary: Optional[str] = None
    score: Optional[ArticleScore] = None
    average_score: Optional[float] = None
    recommendation: Optional[str] = None
    video_angle: Optional[str] = None
    analyzed_at: Optional[datetime] = None
    error: Optional[str] = None
    slack_notified_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, article: Article) -> "ArticleDTO":
        return cls(
            id=str(article.id),
            guid=article.guid,
            title=article.title,
            url=article.url,
            source_id=str(article.source_id) if article.source_id else None,
            published_at=article.published_at,
            status=article.status,
            summary=article.summary,
            score=article.score,
            average_score=article.average_score,
            recommendation=article.recommendation,
            video_angle=article.video_angle,
            analyzed_at=article.analyzed_at,
            error=article.error,
            slack_notified_at=article.slack_notified_at,
            created_at=article.created_at,
        )


class ArticleDetailDTO(ArticleDTO):
    extracted_content: Optional[str] = None

    @classmethod
    def from_entity(cls, article: Article) -> "ArticleDetailDTO":
        base = ArticleDTO.from_entity(article).model_dump()
        return cls(**base, extracted_content=article.extracted_content)


class ArticleListResponse(BaseModel):
    items: List[ArticleDTO]
    total: int
    skip: int
    limit: int


class RetryFailedResponse(BaseModel):
    reset_count: int
