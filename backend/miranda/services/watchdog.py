"""Periodic repair of scans whose task chains have broken."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pymongo.database import Database

from miranda.config import settings
from miranda.entities.enums import ScanQueueStatus, ScanStatus
from miranda.repositories.scan import ScanRepository
from miranda.repositories.scan_queue import ScanQueueRepository
from miranda.services.scan_log_service import ScanLogService
from miranda.utils.datetime import minutes_since, utc_now

logger = logging.getLogger(__name__)

INIT_TIMEOUT_ERROR = "Scan timed out during initialization"


class ScanWatchdog:
    """
    Checks every non-completed scan once per pass.

    - initializing without a queue for too long: completed with an error
    - queue marked completed while ids remain: reopened, one worker started
    - running with no activity for too long: one worker started

    A restart first claims the scan by advancing last_activity_at, so
    overlapping passes start at most one extra worker per stall window.
    """

    def __init__(
        self,
        db: Database,
        dispatcher: Any = None,
        init_timeout_minutes: Optional[int] = None,
        stall_timeout_minutes: Optional[int] = None,
    ):
        self.scan_repo = ScanRepository(db)
        self.queue_repo = ScanQueueRepository(db)
        self.scan_log = ScanLogService(db)
        self.init_timeout_minutes = init_timeout_minutes or settings.WATCHDOG_INIT_TIMEOUT_MINUTES
        self.stall_timeout_minutes = stall_timeout_minutes or settings.WATCHDOG_STALL_TIMEOUT_MINUTES
        if dispatcher is None:
            from miranda.tasks.dispatch import get_dispatcher

            dispatcher = get_dispatcher()
        self.dispatcher = dispatcher

    def run(self, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or utc_now()
        summary = {"scans_checked": 0, "timed_out": 0, "repaired": 0, "restarted": 0}

        for scan in self.scan_repo.list_active():
            summary["scans_checked"] += 1
            queue = self.queue_repo.find_by_scan(scan.id)

            if queue is None:
                if (
                    scan.status == ScanStatus.INITIALIZING.value
                    and minutes_since(scan.created_at, now) > self.init_timeout_minutes
                ):
                    if self.scan_repo.mark_completed(scan.id, error=INIT_TIMEOUT_ERROR):
                        self.scan_log.error(scan.id, "[Watchdog] Scan stuck in initializing, marking as failed")
                        summary["timed_out"] += 1
                continue

            if queue.length > 0 and queue.status == ScanQueueStatus.COMPLETED.value:
                if self.queue_repo.mark_processing(scan.id):
                    self.scan_log.warning(
                        scan.id, "[Watchdog] Queue with items was marked completed, restarting"
                    )
                    self.dispatcher.start_worker(scan.id)
                    summary["repaired"] += 1
                continue

            if scan.status != ScanStatus.RUNNING.value or queue.length == 0:
                continue

            last_activity = scan.last_activity_at or scan.created_at
            if minutes_since(last_activity, now) <= self.stall_timeout_minutes:
                continue

            stale_before = now - timedelta(minutes=self.stall_timeout_minutes)
            if self.scan_repo.claim_stalled(scan.id, stale_before, now=now):
                self.scan_log.warning(
                    scan.id,
                    f"[Watchdog] No progress for over {self.stall_timeout_minutes} minutes, "
                    f"restarting processing ({queue.length} articles left)",
                )
                self.dispatcher.start_worker(scan.id)
                summary["restarted"] += 1

        if summary["timed_out"] or summary["repaired"] or summary["restarted"]:
            logger.info(f"Watchdog pass: {summary}")
        return summary
