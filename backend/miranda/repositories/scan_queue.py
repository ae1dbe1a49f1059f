"""Repository for ScanQueue entities (per-scan work queue)."""

from typing import List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from miranda.entities.enums import ScanQueueStatus
from miranda.entities.scan_queue import ScanQueue
from miranda.utils.datetime import utc_now

from .base import BaseRepository


class ScanQueueRepository(BaseRepository[ScanQueue]):
    """
    Work queue shared by all workers of one scan.

    pop_next relies on MongoDB's single-document atomicity: each pop is one
    find_one_and_update with $pop, so concurrent workers never see the same
    head element.
    """

    def __init__(self, db: Database):
        super().__init__(db, "scan_queues", ScanQueue)

    def find_by_scan(self, scan_id: str | ObjectId) -> Optional[ScanQueue]:
        return self.find_one({"scan_id": self._to_object_id(scan_id)})

    def create(
        self,
        scan_id: str | ObjectId,
        article_ids: List[ObjectId],
        start_immediately: bool = True,
    ) -> ScanQueue:
        """Create the single queue of a scan. Raises DuplicateKeyError if one exists."""
        if not article_ids:
            status = ScanQueueStatus.COMPLETED
        elif start_immediately:
            status = ScanQueueStatus.PROCESSING
        else:
            status = ScanQueueStatus.AWAITING

        now = utc_now()
        return self.insert_one(
            ScanQueue(
                scan_id=self._to_object_id(scan_id),
                status=status,
                article_ids=list(article_ids),
                created_at=now,
                updated_at=now,
            )
        )

    def pop_next(self, scan_id: str | ObjectId) -> Optional[ObjectId]:
        """
        Remove and return the head article id, or None when drained.

        The queue ends in COMPLETED once its last id is popped; calling again
        on an empty queue keeps it COMPLETED.
        """
        scan_oid = self._to_object_id(scan_id)
        now = utc_now()

        # More than one id left: queue stays PROCESSING
        before = self.collection.find_one_and_update(
            {"scan_id": scan_oid, "article_ids.1": {"$exists": True}},
            {
                "$pop": {"article_ids": -1},
                "$set": {"status": ScanQueueStatus.PROCESSING.value, "updated_at": now},
            },
            return_document=ReturnDocument.BEFORE,
        )
        if before is None:
            # Exactly one id left: this pop drains the queue
            before = self.collection.find_one_and_update(
                {"scan_id": scan_oid, "article_ids": {"$size": 1}},
                {
                    "$pop": {"article_ids": -1},
                    "$set": {"status": ScanQueueStatus.COMPLETED.value, "updated_at": now},
                },
                return_document=ReturnDocument.BEFORE,
            )

        if before is not None and before.get("article_ids"):
            return before["article_ids"][0]

        self.collection.update_one(
            {"scan_id": scan_oid, "status": {"$ne": ScanQueueStatus.COMPLETED.value}},
            {"$set": {"status": ScanQueueStatus.COMPLETED.value, "updated_at": now}},
        )
        return None

    def length(self, scan_id: str | ObjectId) -> int:
        queue = self.find_by_scan(scan_id)
        return queue.length if queue else 0

    def cancel(self, scan_id: str | ObjectId) -> None:
        self.collection.update_one(
            {"scan_id": self._to_object_id(scan_id)},
            {
                "$set": {
                    "article_ids": [],
                    "status": ScanQueueStatus.COMPLETED.value,
                    "updated_at": utc_now(),
                }
            },
        )

    def mark_processing(self, scan_id: str | ObjectId) -> bool:
        """Re-open a queue that was marked COMPLETED while items remained."""
        result = self.collection.update_one(
            {
                "scan_id": self._to_object_id(scan_id),
                "status": ScanQueueStatus.COMPLETED.value,
                "article_ids.0": {"$exists": True},
            },
            {"$set": {"status": ScanQueueStatus.PROCESSING.value, "updated_at": utc_now()}},
        )
        return result.modified_count == 1
