"""Repository for Article entities."""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo.database import Database

from miranda.entities.article import Article, ArticleScore
from miranda.entities.enums import NOTIFIABLE_RECOMMENDATIONS, ArticleStatus
from miranda.utils.datetime import utc_now

from .base import BaseRepository

# Derived fields cleared when a failed article is reset for another attempt
RETRY_CLEARED_FIELDS = (
    "extracted_content",
    "summary",
    "score",
    "recommendation",
    "video_angle",
    "analyzed_at",
    "error",
)

AVERAGE_SCORE_STAGE = {
    "$addFields": {
        "average_score": {
            "$divide": [
                {
                    "$add": [
                        "$score.relevance",
                        "$score.uniqueness",
                        "$score.engagement",
                        "$score.credibility",
                    ]
                },
                4,
            ]
        }
    }
}


class ArticleRepository(BaseRepository[Article]):
    """MongoDB repository for articles, keyed globally by guid."""

    def __init__(self, db: Database):
        super().__init__(db, "articles", Article)

    def find_by_guid(self, guid: str) -> Optional[Article]:
        return self.find_one({"guid": guid})

    def insert_if_new(
        self,
        guid: str,
        title: str,
        url: str,
        published_at: datetime,
        source_id: Optional[str | ObjectId] = None,
    ) -> Optional[ObjectId]:
        """
        Insert a PENDING article unless its guid is already stored.

        Returns the new id, or None for a duplicate. The upsert is atomic,
        so concurrent ingestions of the same guid insert it once.
        """
        now = utc_now()
        doc = Article(
            guid=guid,
            title=title,
            url=url,
            published_at=published_at,
            source_id=self._to_object_id(source_id),
            status=ArticleStatus.PENDING,
            created_at=now,
            updated_at=now,
        ).to_mongo()
        doc.pop("guid")

        result = self.collection.update_one(
            {"guid": guid},
            {"$setOnInsert": doc},
            upsert=True,
        )
        return result.upserted_id

    def mark_processing(self, article_id: str | ObjectId) -> None:
        self.update_one(article_id, {"status": ArticleStatus.PROCESSING.value, "error": None})

    def save_extracted_content(self, article_id: str | ObjectId, content: str) -> None:
        self.update_one(article_id, {"extracted_content": content})

    def save_analysis(
        self,
        article_id: str | ObjectId,
        summary: str,
        score: ArticleScore,
        recommendation: str,
        video_angle: Optional[str],
    ) -> None:
        now = utc_now()
        self.update_one(
            article_id,
            {
                "summary": summary,
                "score": score.model_dump(),
                "recommendation": recommendation,
                "video_angle": video_angle,
                "analyzed_at": now,
                "status": ArticleStatus.COMPLETED.value,
                "updated_at": now,
            },
        )

    def mark_completed_unscored(self, article_id: str | ObjectId) -> None:
        now = utc_now()
        self.update_one(
            article_id,
            {"status": ArticleStatus.COMPLETED.value, "analyzed_at": now, "updated_at": now},
        )

    def mark_failed(self, article_id: str | ObjectId, error: str) -> None:
        self.update_one(article_id, {"status": ArticleStatus.FAILED.value, "error": error})

    def reset_for_retry(self, article_id: str | ObjectId) -> bool:
        """FAILED -> PENDING with derived fields cleared. False if not FAILED."""
        result = self.collection.update_one(
            {"_id": self._to_object_id(article_id), "status": ArticleStatus.FAILED.value},
            self._retry_update(),
        )
        return result.modified_count == 1

    def reset_all_failed(self) -> int:
        result = self.collection.update_many(
            {"status": ArticleStatus.FAILED.value},
            self._retry_update(),
        )
        return result.modified_count

    def _retry_update(self) -> Dict[str, Any]:
        updates: Dict[str, Any] = {field: None for field in RETRY_CLEARED_FIELDS}
        updates["status"] = ArticleStatus.PENDING.value
        updates["updated_at"] = utc_now()
        return {"$set": updates}

    def list_filtered(
        self,
        status: Optional[str] = None,
        recommendation: Optional[str] = None,
        min_score: Optional[float] = None,
        search: Optional[str] = None,
        sort: str = "published",
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Article], int]:
        """
        Filterable article feed.

        Args:
            status: Exact article status
            recommendation: Exact recommendation value
            min_score: Minimum average score (unscored articles excluded)
            search: Case-insensitive match on title or summary
            sort: "published" (newest first) or "score" (best first)
            skip: Pagination offset
            limit: Max results

        Returns:
            Tuple of (articles, total matching)
        """
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if recommendation:
            query["recommendation"] = recommendation
        if search:
            pattern = re.escape(search)
            query["$or"] = [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"summary": {"$regex": pattern, "$options": "i"}},
            ]

        if min_score is None and sort != "score":
            return self.paginate(
                query,
                sort=[("published_at", -1), ("_id", -1)],
                skip=skip,
                limit=limit,
            )

        query["score"] = {"$ne": None}
        pipeline: List[Dict[str, Any]] = [{"$match": query}, AVERAGE_SCORE_STAGE]
        if min_score is not None:
            pipeline.append({"$match": {"average_score": {"$gte": min_score}}})

        total = len(list(self.collection.aggregate(pipeline + [{"$project": {"_id": 1}}])))

        if sort == "score":
            pipeline.append({"$sort": {"average_score": -1, "published_at": -1}})
        else:
            pipeline.append({"$sort": {"published_at": -1, "_id": -1}})
        if skip:
            pipeline.append({"$skip": skip})
        if limit:
            pipeline.append({"$limit": limit})

        return [self._to_entity(doc) for doc in self.collection.aggregate(pipeline)], total

    def find_recommended(self, limit: int = 20) -> List[Article]:
        """Completed, scored articles ranked by average score."""
        pipeline = [
            {"$match": {"status": ArticleStatus.COMPLETED.value, "score": {"$ne": None}}},
            AVERAGE_SCORE_STAGE,
            {"$sort": {"average_score": -1, "published_at": -1}},
            {"$limit": limit},
        ]
        return [self._to_entity(doc) for doc in self.collection.aggregate(pipeline)]

    def find_unnotified_recommended(self, limit: int) -> List[Article]:
        pipeline = [
            {
                "$match": {
                    "status": ArticleStatus.COMPLETED.value,
                    "recommendation": {"$in": list(NOTIFIABLE_RECOMMENDATIONS)},
                    "slack_notified_at": None,
                    "score": {"$ne": None},
                }
            },
            AVERAGE_SCORE_STAGE,
            {"$sort": {"average_score": -1, "published_at": -1}},
            {"$limit": limit},
        ]
        return [self._to_entity(doc) for doc in self.collection.aggregate(pipeline)]

    def mark_notified(self, article_ids: List[str | ObjectId]) -> int:
        oids = [self._to_object_id(a) for a in article_ids]
        now = utc_now()
        result = self.collection.update_many(
            {"_id": {"$in": [o for o in oids if o]}},
            {"$set": {"slack_notified_at": now, "updated_at": now}},
        )
        return result.modified_count

    def count_by_status(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in ArticleStatus}
        for row in self.collection.aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}]):
            counts[row["_id"]] = row["count"]
        return counts
