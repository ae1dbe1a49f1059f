import logging
from typing import Any, Dict

from pymongo.errors import PyMongoError

from miranda.celery_app import celery_app
from miranda.services.feed_ingestion import FeedIngestionService
from miranda.services.pipeline_exceptions import PipelineRetryableError
from miranda.tasks.base import PipelineTask

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=PipelineTask,
    name="miranda.tasks.ingestion.parse_feeds",
    queue="ingestion",
    autoretry_for=(PyMongoError, PipelineRetryableError),
    retry_kwargs={"max_retries": 3, "countdown": 30},
    soft_time_limit=600,
    time_limit=660,
)
def parse_feeds(self: PipelineTask, scan_id: str) -> Dict[str, Any]:
    """
    Read the scan's feeds, store new articles, build its queue and
    launch the article workers.

    Flow: parse_feeds -> process_next_article x parallelism
    """
    result = FeedIngestionService(self.db).ingest(scan_id)
    logger.info(f"Feed ingestion for scan {scan_id}: {result}")
    return result
