"""
Maintenance Tasks - Scheduled repair and housekeeping jobs.

These tasks are designed to run periodically via Celery Beat.
"""

import logging
from datetime import timedelta
from typing import Any, Dict

from celery import shared_task

from miranda.database.mongo import get_database
from miranda.repositories.scan_log import ScanLogRepository
from miranda.services.watchdog import ScanWatchdog
from miranda.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@shared_task(
    name="miranda.tasks.maintenance.check_stalled_scans",
    bind=True,
    queue="maintenance",
)
def check_stalled_scans(self) -> Dict[str, Any]:
    """
    Watchdog pass over every non-completed scan.

    Times out scans stuck in initialization, reopens queues wrongly marked
    completed and restarts chains that stopped making progress.
    """
    return ScanWatchdog(get_database()).run()


@shared_task(
    name="miranda.tasks.maintenance.cleanup_scan_logs",
    bind=True,
    queue="maintenance",
)
def cleanup_scan_logs(self, days: int = 30) -> Dict[str, Any]:
    """
    Delete scan log lines older than the retention window.

    Args:
        days: Number of days to keep.

    Returns:
        Dict with deleted count and timestamp.
    """
    repo = ScanLogRepository(get_database())
    cutoff = utc_now() - timedelta(days=days)
    deleted_count = repo.delete_older_than(cutoff)

    logger.info(f"Scan log cleanup completed: deleted {deleted_count} lines older than {days} days")

    return {
        "status": "success",
        "deleted_count": deleted_count,
        "days_threshold": days,
        "executed_at": utc_now().isoformat(),
    }
