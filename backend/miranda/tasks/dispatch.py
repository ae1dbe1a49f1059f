"""Enqueue pipeline steps. Every scan task is scheduled through here."""

import logging

from bson import ObjectId

logger = logging.getLogger(__name__)


class ScanDispatcher:
    """Schedules the Celery tasks that drive a scan."""

    def start_ingestion(self, scan_id: str | ObjectId, countdown: float = 0) -> None:
        from miranda.tasks.ingestion import parse_feeds

        parse_feeds.apply_async(args=[str(scan_id)], countdown=countdown or None)
        logger.debug(f"Dispatched parse_feeds for scan {scan_id} (countdown={countdown})")

    def start_worker(self, scan_id: str | ObjectId, countdown: float = 0) -> None:
        from miranda.tasks.article_processing import process_next_article

        process_next_article.apply_async(args=[str(scan_id)], countdown=countdown or None)


def get_dispatcher() -> ScanDispatcher:
    return ScanDispatcher()
