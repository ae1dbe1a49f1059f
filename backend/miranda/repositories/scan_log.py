"""Repository for ScanLog entities (per-scan narration)."""

from datetime import datetime
from typing import List

from bson import ObjectId
from pymongo.database import Database

from miranda.entities.scan_log import ScanLog
from miranda.utils.datetime import utc_now

from .base import BaseRepository


class ScanLogRepository(BaseRepository[ScanLog]):
    def __init__(self, db: Database) -> None:
        super().__init__(db, "scan_logs", ScanLog)

    def append(self, scan_id: str | ObjectId, message: str, level: str = "INFO") -> None:
        self.collection.insert_one(
            {
                "scan_id": self._to_object_id(scan_id),
                "message": message,
                "level": level.upper(),
                "created_at": utc_now(),
            }
        )

    def list_for_scan(self, scan_id: str | ObjectId, limit: int = 500) -> List[ScanLog]:
        return self.find_many(
            {"scan_id": self._to_object_id(scan_id)},
            sort=[("created_at", 1), ("_id", 1)],
            limit=limit,
        )

    def delete_older_than(self, cutoff: datetime) -> int:
        return self.delete_many({"created_at": {"$lt": cutoff}})
