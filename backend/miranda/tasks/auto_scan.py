import logging
from typing import Any, Dict

from celery import shared_task

from miranda.database.mongo import get_database
from miranda.services.auto_scan_service import AutoScanService

logger = logging.getLogger(__name__)


@shared_task(
    name="miranda.tasks.auto_scan.check_and_trigger_scan",
    bind=True,
    queue="maintenance",
)
def check_and_trigger_scan(self) -> Dict[str, Any]:
    """Start a scan when auto-scan is enabled and its interval has elapsed."""
    result = AutoScanService(get_database()).check_and_trigger_scan()
    if result["triggered"]:
        logger.info(f"Auto-scan triggered: {result['scan_id']}")
    return result
