"""Repository for Feed entities."""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.database import Database

from miranda.entities.feed import Feed
from miranda.utils.datetime import utc_now

from .base import BaseRepository


class FeedRepository(BaseRepository[Feed]):
    """MongoDB repository for feed sources."""

    def __init__(self, db: Database):
        super().__init__(db, "feeds", Feed)

    def list_all(self, tag: Optional[str] = None) -> List[Feed]:
        query: Dict[str, Any] = {}
        if tag:
            query["tags"] = tag
        return self.find_many(query, sort=[("name", 1)])

    def find_for_scan(self, filter_tags: Optional[List[str]] = None, limit: int = 0) -> List[Feed]:
        """
        Feeds a scan should read.

        Any-tag match when filter_tags is non-empty; feeds without an
        xml_url are left out. limit=0 means no cap.
        """
        query: Dict[str, Any] = {"xml_url": {"$nin": [None, ""]}}
        if filter_tags:
            query["tags"] = {"$in": list(filter_tags)}
        return self.find_many(query, sort=[("created_at", 1), ("_id", 1)], limit=limit)

    def count_for_scan(self, filter_tags: Optional[List[str]] = None) -> int:
        query: Dict[str, Any] = {"xml_url": {"$nin": [None, ""]}}
        if filter_tags:
            query["tags"] = {"$in": list(filter_tags)}
        return self.count(query)

    def mark_fetch_success(self, feed_id: str | ObjectId) -> None:
        now = utc_now()
        self.update_one(
            feed_id,
            {"last_fetched_at": now, "last_error": None, "fail_count": 0, "updated_at": now},
        )

    def mark_fetch_failure(self, feed_id: str | ObjectId, error: str) -> None:
        now = utc_now()
        self.collection.update_one(
            {"_id": self._to_object_id(feed_id)},
            {
                "$inc": {"fail_count": 1},
                "$set": {"last_error": error, "last_fetched_at": now, "updated_at": now},
            },
        )

    def bulk_create(self, feeds: List[Feed]) -> int:
        """Insert feeds whose xml_url is not stored yet. Returns the number created."""
        created = 0
        for feed in feeds:
            result = self.collection.update_one(
                {"xml_url": feed.xml_url},
                {"$setOnInsert": {k: v for k, v in feed.to_mongo().items() if k != "xml_url"}},
                upsert=True,
            )
            if result.upserted_id is not None:
                created += 1
        return created
