import logging
from typing import Any, Dict

from pymongo.errors import PyMongoError

from miranda.celery_app import celery_app
from miranda.services.article_worker import ArticleWorker
from miranda.tasks.base import PipelineTask

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=PipelineTask,
    name="miranda.tasks.article_processing.process_next_article",
    queue="articles",
    autoretry_for=(PyMongoError,),
    retry_kwargs={"max_retries": 3, "countdown": 15},
    soft_time_limit=300,
    time_limit=360,
)
def process_next_article(self: PipelineTask, scan_id: str) -> Dict[str, Any]:
    """
    Process one queued article of a scan, then schedule the next invocation.

    Returns {"status": completed | skipped | processed | error, ...}.
    """
    outcome = ArticleWorker(self.db).process_next(scan_id)
    logger.debug(f"Worker step for scan {scan_id}: {outcome.status}")
    return outcome.to_dict()
