"""
Feed ingestion: turn a scan's feeds into new articles and a work queue.

Runs once per scan inside the `parse_feeds` task. Re-delivery of the task
is harmless: a scan that already has a queue is left alone.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from miranda.config import settings
from miranda.repositories.article import ArticleRepository
from miranda.repositories.feed import FeedRepository
from miranda.repositories.scan import ScanRepository
from miranda.repositories.scan_queue import ScanQueueRepository
from miranda.services.feed_reader import FeedItem, FeedReader
from miranda.services.pipeline_exceptions import FeedFetchError
from miranda.services.scan_log_service import ScanLogService
from miranda.utils.datetime import EPOCH, parse_datetime, utc_now

logger = logging.getLogger(__name__)


def resolve_published_at(item: FeedItem) -> Optional[datetime]:
    """First parseable date among the item's candidates, as naive UTC."""
    for candidate in item.date_candidates:
        if not candidate:
            continue
        parsed = parse_datetime(candidate, default_now=False)
        if parsed is not None:
            return parsed
    return None


def select_recent_items(
    items: Iterable[FeedItem],
    days_back: int,
    now: Optional[datetime] = None,
    undated_limit: Optional[int] = None,
) -> List[Tuple[FeedItem, datetime]]:
    """
    Keep items published within `days_back` days of `now` (cutoff inclusive).

    Undated items are kept only while their position in the feed is below
    `undated_limit`, and are stamped with the epoch so they sort last.
    """
    now = now or utc_now()
    cutoff = now - timedelta(days=days_back)
    if undated_limit is None:
        undated_limit = settings.UNDATED_ITEM_FALLBACK_LIMIT

    selected: List[Tuple[FeedItem, datetime]] = []
    for index, item in enumerate(items):
        published_at = resolve_published_at(item)
        if published_at is None:
            if index < undated_limit:
                selected.append((item, EPOCH))
        elif published_at >= cutoff:
            selected.append((item, published_at))
    return selected


class FeedIngestionService:
    def __init__(
        self,
        db: Database,
        dispatcher: Any = None,
        feed_reader: Optional[FeedReader] = None,
    ):
        self.scan_repo = ScanRepository(db)
        self.queue_repo = ScanQueueRepository(db)
        self.article_repo = ArticleRepository(db)
        self.feed_repo = FeedRepository(db)
        self.scan_log = ScanLogService(db)
        self.feed_reader = feed_reader or FeedReader()
        if dispatcher is None:
            from miranda.tasks.dispatch import get_dispatcher

            dispatcher = get_dispatcher()
        self.dispatcher = dispatcher

    def ingest(self, scan_id: str | ObjectId, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Fetch feeds, store new articles, build the queue and launch workers.

        Returns a summary dict with a `status` of skipped, cancelled,
        completed or running.
        """
        scan = self.scan_repo.find_by_id(scan_id)
        if scan is None:
            logger.warning(f"Scan {scan_id} not found, skipping ingestion")
            return {"status": "skipped", "reason": "scan_not_found"}
        if scan.is_completed:
            logger.info(f"Scan {scan_id} already completed, skipping ingestion")
            return {"status": "skipped", "reason": "scan_completed"}
        if self.queue_repo.find_by_scan(scan_id) is not None:
            logger.info(f"Scan {scan_id} already has a queue, skipping ingestion")
            return {"status": "skipped", "reason": "already_ingested"}

        options = scan.options
        feeds = self.feed_repo.find_for_scan(options.filter_tags, limit=options.feed_count)
        tag_note = f" tagged {', '.join(options.filter_tags)}" if options.filter_tags else ""
        self.scan_log.log(scan_id, f"Reading {len(feeds)} feeds{tag_note} (last {options.days_back} days)")

        article_ids: List[ObjectId] = []
        seen_keys = set()
        failed_feeds = 0

        for feed in feeds:
            try:
                parsed = self.feed_reader.fetch_and_parse(feed.xml_url)
            except FeedFetchError as e:
                failed_feeds += 1
                self.feed_repo.mark_fetch_failure(feed.id, str(e))
                self.scan_log.warning(scan_id, f"Failed to read feed {feed.name}: {e}")
                continue
            except Exception as e:
                failed_feeds += 1
                logger.exception(f"Unexpected error reading feed {feed.xml_url}")
                self.feed_repo.mark_fetch_failure(feed.id, f"{type(e).__name__}: {e}")
                self.scan_log.warning(scan_id, f"Failed to read feed {feed.name}: {e}")
                continue

            self.feed_repo.mark_fetch_success(feed.id)
            recent = select_recent_items(parsed.items, options.days_back, now=now)

            new_count = 0
            for item, published_at in recent:
                key = item.dedup_key
                if not key or key in seen_keys:
                    continue
                seen_keys.add(key)
                new_id = self.article_repo.insert_if_new(
                    guid=key,
                    title=item.title or item.link or key,
                    url=item.link,
                    published_at=published_at,
                    source_id=feed.id,
                )
                if new_id is not None:
                    article_ids.append(new_id)
                    new_count += 1

            self.scan_log.log(
                scan_id,
                f"Feed {feed.name}: {len(parsed.items)} items, {len(recent)} recent, {new_count} new",
            )

        try:
            self.queue_repo.create(scan_id, article_ids, start_immediately=bool(article_ids))
        except DuplicateKeyError:
            logger.info(f"Queue for scan {scan_id} created concurrently, skipping")
            return {"status": "skipped", "reason": "already_ingested"}

        if not self.scan_repo.mark_running(scan_id, total_articles=len(article_ids)):
            # Cancelled (or timed out) while feeds were being read
            self.queue_repo.cancel(scan_id)
            self.scan_log.warning(scan_id, "Scan was stopped during feed ingestion, no workers started")
            return {"status": "cancelled", "new_articles": len(article_ids)}

        summary = {
            "feeds": len(feeds),
            "failed_feeds": failed_feeds,
            "new_articles": len(article_ids),
        }

        if not article_ids:
            self.scan_repo.mark_completed(scan_id)
            self.scan_log.log(scan_id, "No new articles found, scan completed")
            return {"status": "completed", **summary}

        workers = min(options.parallelism, len(article_ids))
        for i in range(workers):
            self.dispatcher.start_worker(scan_id, countdown=i * settings.WORKER_STAGGER_SECONDS)

        self.scan_log.log(
            scan_id,
            f"Queued {len(article_ids)} new articles, started {workers} workers",
        )
        return {"status": "running", "workers": workers, **summary}
