"""Repository for Scan entities."""

from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pymongo.database import Database

from miranda.entities.enums import ScanStatus
from miranda.entities.scan import Scan, ScanOptions
from miranda.utils.datetime import utc_now

from .base import BaseRepository

NOT_COMPLETED = {"$ne": ScanStatus.COMPLETED.value}


class ScanRepository(BaseRepository[Scan]):
    """
    MongoDB repository for scans.

    Every status change is a conditional single-document update, so two
    writers racing on the same scan cannot both win a transition.
    """

    def __init__(self, db: Database):
        super().__init__(db, "scans", Scan)

    def create_scan(self, options: ScanOptions) -> Scan:
        """
        Insert a new scan in INITIALIZING.

        Raises pymongo DuplicateKeyError when the one-active-scan index
        already holds a non-completed scan.
        """
        now = utc_now()
        return self.insert_one(
            Scan(
                status=ScanStatus.INITIALIZING,
                options=options,
                created_at=now,
                updated_at=now,
                active=True,
            )
        )

    def find_active(self) -> Optional[Scan]:
        return self.find_one({"status": NOT_COMPLETED}, sort=[("created_at", -1), ("_id", -1)])

    def list_active(self) -> List[Scan]:
        return self.find_many({"status": NOT_COMPLETED}, sort=[("created_at", 1)])

    def list_recent(self, limit: int = 50) -> List[Scan]:
        return self.find_many({}, sort=[("created_at", -1), ("_id", -1)], limit=limit)

    def mark_running(self, scan_id: str | ObjectId, total_articles: int) -> bool:
        """INITIALIZING -> RUNNING. False when the scan has moved on (e.g. cancelled)."""
        now = utc_now()
        result = self.collection.update_one(
            {
                "_id": self._to_object_id(scan_id),
                "status": ScanStatus.INITIALIZING.value,
            },
            {
                "$set": {
                    "status": ScanStatus.RUNNING.value,
                    "total_articles": total_articles,
                    "processed_articles": 0,
                    "last_activity_at": now,
                    "updated_at": now,
                }
            },
        )
        return result.modified_count == 1

    def mark_completed(self, scan_id: str | ObjectId, error: Optional[str] = None) -> bool:
        """
        Move a scan to COMPLETED.

        Only the first caller wins, so completed_at is written exactly once.
        Returns True for that caller.
        """
        now = utc_now()
        updates = {
            "status": ScanStatus.COMPLETED.value,
            "completed_at": now,
            "updated_at": now,
        }
        if error:
            updates["error"] = error

        result = self.collection.update_one(
            {"_id": self._to_object_id(scan_id), "status": NOT_COMPLETED},
            {"$set": updates, "$unset": {"active": ""}},
        )
        return result.modified_count == 1

    def increment_processed(self, scan_id: str | ObjectId) -> None:
        now = utc_now()
        self.collection.update_one(
            {"_id": self._to_object_id(scan_id)},
            {
                "$inc": {"processed_articles": 1},
                "$set": {"last_activity_at": now, "updated_at": now},
            },
        )

    def claim_stalled(
        self,
        scan_id: str | ObjectId,
        stale_before: datetime,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Claim a stalled RUNNING scan for a restart by advancing last_activity_at.

        Only one caller per stall window gets True.
        """
        now = now or utc_now()
        result = self.collection.update_one(
            {
                "_id": self._to_object_id(scan_id),
                "status": ScanStatus.RUNNING.value,
                "$or": [
                    {"last_activity_at": {"$lt": stale_before}},
                    {"last_activity_at": None, "created_at": {"$lt": stale_before}},
                ],
            },
            {"$set": {"last_activity_at": now, "updated_at": now}},
        )
        return result.modified_count == 1
