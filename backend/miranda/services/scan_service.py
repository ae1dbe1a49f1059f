"""Scan controller: start, cancel and read scans."""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from miranda.config import settings
from miranda.entities.scan import Scan, ScanOptions
from miranda.entities.scan_log import ScanLog
from miranda.repositories.scan import ScanRepository
from miranda.repositories.scan_log import ScanLogRepository
from miranda.repositories.scan_queue import ScanQueueRepository
from miranda.services.pipeline_exceptions import (
    ScanAlreadyCompletedError,
    ScanAlreadyRunningError,
    ScanNotFoundError,
)
from miranda.services.scan_log_service import ScanLogService

logger = logging.getLogger(__name__)


class ScanService:
    def __init__(self, db: Database, dispatcher: Any = None):
        self.scan_repo = ScanRepository(db)
        self.queue_repo = ScanQueueRepository(db)
        self.log_repo = ScanLogRepository(db)
        self.scan_log = ScanLogService(db)
        if dispatcher is None:
            from miranda.tasks.dispatch import get_dispatcher

            dispatcher = get_dispatcher()
        self.dispatcher = dispatcher

    def start_scan(
        self,
        config: ScanOptions | Dict[str, Any] | None = None,
        delay_seconds: float = 0,
    ) -> str:
        """
        Create a scan and schedule its feed ingestion.

        Raises:
            ScanAlreadyRunningError: another scan is not completed yet
        """
        if config is None:
            config = ScanOptions(
                days_back=settings.SCAN_DEFAULT_DAYS_BACK,
                parallelism=settings.SCAN_DEFAULT_PARALLELISM,
            )
        elif isinstance(config, dict):
            config = ScanOptions.model_validate(config)
        if config.parallelism > settings.SCAN_MAX_PARALLELISM:
            config = config.model_copy(update={"parallelism": settings.SCAN_MAX_PARALLELISM})

        running = self.scan_repo.find_active()
        if running is not None:
            raise ScanAlreadyRunningError(str(running.id))

        try:
            scan = self.scan_repo.create_scan(config)
        except DuplicateKeyError as e:
            raise ScanAlreadyRunningError() from e

        scan_id = str(scan.id)
        self.scan_log.log(
            scan_id,
            f"Scan created (feeds={config.feed_count or 'all'}, days_back={config.days_back}, "
            f"parallelism={config.parallelism})",
        )

        try:
            self.dispatcher.start_ingestion(scan_id, countdown=delay_seconds)
        except Exception as e:
            self.scan_repo.mark_completed(scan_id, error=f"Failed to schedule ingestion: {e}")
            self.scan_log.error(scan_id, f"Failed to schedule ingestion: {e}")
            raise

        return scan_id

    def cancel_scan(self, scan_id: str) -> None:
        """
        Complete a scan early and empty its queue.

        Workers already holding an article finish it; their next pop sees
        an empty queue.
        """
        scan = self.scan_repo.find_by_id(scan_id)
        if scan is None:
            raise ScanNotFoundError(scan_id)
        if scan.is_completed or not self.scan_repo.mark_completed(scan_id):
            raise ScanAlreadyCompletedError(scan_id)

        self.queue_repo.cancel(scan_id)
        self.scan_log.log(scan_id, "Scan cancelled")

    def get_scan(self, scan_id: str) -> Scan:
        scan = self.scan_repo.find_by_id(scan_id)
        if scan is None:
            raise ScanNotFoundError(scan_id)
        return scan

    def get_running_scan(self) -> Optional[Scan]:
        return self.scan_repo.find_active()

    def list_scans(self, limit: int = 50) -> List[Scan]:
        return self.scan_repo.list_recent(limit=limit)

    def get_queue_length(self, scan_id: str | ObjectId) -> int:
        return self.queue_repo.length(scan_id)

    def get_scan_logs(self, scan_id: str, limit: int = 500) -> List[ScanLog]:
        self.get_scan(scan_id)
        return self.log_repo.list_for_scan(scan_id, limit=limit)
