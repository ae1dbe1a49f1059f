"""Article reads, retries and notification bookkeeping."""

import logging
from typing import List, Optional, Tuple

from bson import ObjectId
from pymongo.database import Database

from miranda.entities.article import Article
from miranda.repositories.article import ArticleRepository
from miranda.services.pipeline_exceptions import ArticleNotFoundError, ArticleNotRetryableError

logger = logging.getLogger(__name__)


class ArticleService:
    def __init__(self, db: Database):
        self.article_repo = ArticleRepository(db)

    def get_article(self, article_id: str) -> Article:
        article = self.article_repo.find_by_id(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        return article

    def retry_article(self, article_id: str) -> Article:
        """
        Reset a failed article to pending with its derived fields cleared.

        The article is not put back on any queue.
        """
        article = self.get_article(article_id)
        if not self.article_repo.reset_for_retry(article_id):
            raise ArticleNotRetryableError(article_id, article.status)
        logger.info(f"Article {article_id} reset for retry")
        return self.get_article(article_id)

    def retry_all_failed(self) -> int:
        count = self.article_repo.reset_all_failed()
        logger.info(f"Reset {count} failed articles for retry")
        return count

    def list_articles(
        self,
        status: Optional[str] = None,
        recommendation: Optional[str] = None,
        min_score: Optional[float] = None,
        search: Optional[str] = None,
        sort: str = "published",
        limit: int = 50,
        skip: int = 0,
    ) -> Tuple[List[Article], int]:
        return self.article_repo.list_filtered(
            status=status,
            recommendation=recommendation,
            min_score=min_score,
            search=search,
            sort=sort,
            skip=skip,
            limit=limit,
        )

    def get_recommended_articles(self, limit: int = 20) -> List[Article]:
        return self.article_repo.find_recommended(limit=limit)

    def unnotified_recommended_articles(self, limit: int) -> List[Article]:
        return self.article_repo.find_unnotified_recommended(limit)

    def mark_notified(self, article_ids: List[str | ObjectId]) -> int:
        return self.article_repo.mark_notified(article_ids)
