"""Article API endpoints."""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database

from miranda.database.mongo import get_db
from miranda.dtos.article import (
    ArticleDetailDTO,
    ArticleDTO,
    ArticleListResponse,
    RetryFailedResponse,
)
from miranda.entities.enums import ArticleStatus, Recommendation
from miranda.services.article_service import ArticleService

router = APIRouter(prefix="/articles", tags=["Articles"])


@router.get("", response_model=ArticleListResponse)
def list_articles(
    status: Optional[ArticleStatus] = None,
    recommendation: Optional[Recommendation] = None,
    min_score: Optional[float] = Query(None, ge=1, le=10),
    search: Optional[str] = Query(None, max_length=200),
    sort: Literal["published", "score"] = "published",
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Database = Depends(get_db),
):
    """Filterable article feed."""
    items, total = ArticleService(db).list_articles(
        status=status.value if status else None,
        recommendation=recommendation.value if recommendation else None,
        min_score=min_score,
        search=search,
        sort=sort,
        limit=limit,
        skip=skip,
    )
    return ArticleListResponse(
        items=[ArticleDTO.from_entity(a) for a in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/recommended", response_model=List[ArticleDTO])
def get_recommended_articles(
    limit: int = Query(20, ge=1, le=100),
    db: Database = Depends(get_db),
):
    return [ArticleDTO.from_entity(a) for a in ArticleService(db).get_recommended_articles(limit)]


@router.post("/retry-failed", response_model=RetryFailedResponse)
def retry_all_failed(db: Database = Depends(get_db)):
    return RetryFailedResponse(reset_count=ArticleService(db).retry_all_failed())


@router.get("/{article_id}", response_model=ArticleDetailDTO)
def get_article(article_id: str, db: Database = Depends(get_db)):
    return ArticleDetailDTO.from_entity(ArticleService(db).get_article(article_id))


@router.post("/{article_id}/retry", response_model=ArticleDTO)
def retry_article(article_id: str, db: Database = Depends(get_db)):
    """Reset a failed article to pending. 409 for any other status."""
    return ArticleDTO.from_entity(ArticleService(db).retry_article(article_id))
