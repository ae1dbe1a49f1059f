"""Periodic scan trigger driven by the auto-scan settings."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from pymongo.database import Database

from miranda.entities.scan import ScanOptions
from miranda.repositories.feed import FeedRepository
from miranda.services.pipeline_exceptions import ScanAlreadyRunningError
from miranda.services.scan_service import ScanService
from miranda.services.settings_service import SettingsService
from miranda.utils.datetime import minutes_since, utc_now

logger = logging.getLogger(__name__)


class AutoScanService:
    def __init__(self, db: Database, dispatcher: Any = None):
        self.settings = SettingsService(db)
        self.feed_repo = FeedRepository(db)
        self.scan_service = ScanService(db, dispatcher=dispatcher)

    def check_and_trigger_scan(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utc_now()
        config = self.settings.get_auto_scan()

        if not config.enabled:
            return {"triggered": False, "reason": "disabled"}
        if self.scan_service.get_running_scan() is not None:
            return {"triggered": False, "reason": "scan_running"}
        if (
            config.last_run_at is not None
            and minutes_since(config.last_run_at, now) < config.interval_minutes
        ):
            return {"triggered": False, "reason": "interval_not_elapsed"}
        if self.feed_repo.count_for_scan(config.filter_tags) == 0:
            return {"triggered": False, "reason": "no_feeds"}

        options = ScanOptions(
            feed_count=0,
            days_back=config.days_back,
            parallelism=config.parallelism,
            filter_tags=config.filter_tags,
        )
        try:
            scan_id = self.scan_service.start_scan(options)
        except ScanAlreadyRunningError:
            return {"triggered": False, "reason": "scan_running"}
        self.settings.update_auto_scan({"last_run_at": now})

        logger.info(f"Auto-scan started scan {scan_id}")
        return {"triggered": True, "scan_id": scan_id, "config": options.model_dump()}
