"""
Article worker: one invocation processes one queued article.

A worker never loops. After handling an article it schedules its own
continuation through the dispatcher, so each scan runs as `parallelism`
independent chains that all drain the same queue.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo.database import Database

from miranda.config import settings
from miranda.repositories.api_usage import ApiUsageRepository
from miranda.repositories.article import ArticleRepository
from miranda.repositories.scan import ScanRepository
from miranda.repositories.scan_queue import ScanQueueRepository
from miranda.services.article_analyzer import ArticleAnalyzer
from miranda.services.content_extractor import ContentExtractor
from miranda.services.scan_log_service import ScanLogService

logger = logging.getLogger(__name__)


@dataclass
class WorkerOutcome:
    """completed | skipped | processed | error"""

    status: str
    article_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class ArticleWorker:
    def __init__(
        self,
        db: Database,
        dispatcher: Any = None,
        extractor: Optional[ContentExtractor] = None,
        analyzer: Optional[ArticleAnalyzer] = None,
    ):
        self.scan_repo = ScanRepository(db)
        self.queue_repo = ScanQueueRepository(db)
        self.article_repo = ArticleRepository(db)
        self.scan_log = ScanLogService(db)
        self.extractor = extractor or ContentExtractor()
        self.analyzer = analyzer or ArticleAnalyzer(usage_repo=ApiUsageRepository(db))
        if dispatcher is None:
            from miranda.tasks.dispatch import get_dispatcher

            dispatcher = get_dispatcher()
        self.dispatcher = dispatcher

    def process_next(self, scan_id: str | ObjectId) -> WorkerOutcome:
        article_id = self.queue_repo.pop_next(scan_id)
        if article_id is None:
            if self.scan_repo.mark_completed(scan_id):
                self.scan_log.log(scan_id, "Queue drained, scan completed")
            return WorkerOutcome(status="completed")

        article = self.article_repo.find_by_id(article_id)
        if article is None:
            self.scan_log.warning(scan_id, f"Article {article_id} not found, skipping")
            self.dispatcher.start_worker(scan_id)
            return WorkerOutcome(status="skipped", article_id=str(article_id))

        self.scan_log.log(scan_id, f"Processing article: {article.title}")
        self.article_repo.mark_processing(article_id)

        try:
            content = self.extractor.extract(article.url)[: settings.EXTRACTED_CONTENT_MAX_CHARS]
            self.article_repo.save_extracted_content(article_id, content)
            self.scan_log.log(scan_id, f"Extracted {len(content)} characters")

            analysis = self.analyzer.analyze(
                title=article.title,
                url=article.url,
                published_at=article.published_at,
                content=content,
                scan_id=str(scan_id),
                article_id=str(article_id),
            )
            if analysis is not None:
                self.article_repo.save_analysis(
                    article_id,
                    summary=analysis.summary,
                    score=analysis.score,
                    recommendation=analysis.recommendation,
                    video_angle=analysis.video_angle,
                )
                self.scan_log.log(
                    scan_id,
                    f"Article analyzed: {analysis.recommendation} "
                    f"(avg score: {analysis.average_score:.1f})",
                )
            else:
                self.article_repo.mark_completed_unscored(article_id)
                self.scan_log.warning(scan_id, "Article analysis completed without structured scores")
            outcome = WorkerOutcome(status="processed", article_id=str(article_id))
        except Exception as e:
            self.article_repo.mark_failed(article_id, str(e))
            self.scan_log.error(scan_id, f"Error processing article {article.title}: {e}")
            outcome = WorkerOutcome(status="error", article_id=str(article_id), error=str(e))

        self.scan_repo.increment_processed(scan_id)
        self.dispatcher.start_worker(scan_id)
        return outcome
