"""Per-scan narration, written to the scan log stream and the process log."""

import logging

from bson import ObjectId
from pymongo.database import Database

from miranda.repositories.scan_log import ScanLogRepository

logger = logging.getLogger(__name__)


class ScanLogService:
    def __init__(self, db: Database):
        self.repo = ScanLogRepository(db)

    def log(self, scan_id: str | ObjectId, message: str, level: str = "INFO") -> None:
        logger.log(logging.getLevelName(level.upper()), f"[scan={str(scan_id)[-8:]}] {message}")
        self.repo.append(scan_id, message, level)

    def warning(self, scan_id: str | ObjectId, message: str) -> None:
        self.log(scan_id, message, "WARNING")

    def error(self, scan_id: str | ObjectId, message: str) -> None:
        self.log(scan_id, message, "ERROR")
