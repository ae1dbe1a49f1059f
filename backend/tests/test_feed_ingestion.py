import unittest
from datetime import datetime, timedelta

from miranda.entities.enums import ArticleStatus, ScanQueueStatus, ScanStatus
from miranda.entities.scan import ScanOptions
from miranda.repositories.article import ArticleRepository
from miranda.repositories.feed import FeedRepository
from miranda.repositories.scan import ScanRepository
from miranda.repositories.scan_queue import ScanQueueRepository
from miranda.services.feed_ingestion import (
    FeedIngestionService,
    resolve_published_at,
    select_recent_items,
)
from miranda.services.feed_reader import FeedItem, FeedReader
from miranda.services.pipeline_exceptions import FeedFetchError
from miranda.utils.datetime import EPOCH
from tests.support import RecordingDispatcher, add_feed, fake_reader, iso, item, make_db

NOW = datetime(2025, 6, 15, 12, 0, 0)


class TestRecencySelection(unittest.TestCase):
    def test_cutoff_is_inclusive(self):
        cutoff = NOW - timedelta(days=7)
        items = [
            item(guid="at-cutoff", iso_date=iso(cutoff)),
            item(guid="just-before", iso_date=iso(cutoff - timedelta(seconds=1))),
            item(guid="recent", iso_date=iso(NOW - timedelta(hours=1))),
        ]
        selected = [i.guid for i, _ in select_recent_items(items, days_back=7, now=NOW)]
        self.assertEqual(selected, ["at-cutoff", "recent"])

    def test_undated_items_limited_by_feed_position(self):
        items = [item(guid=f"undated-{i}") for i in range(12)]
        selected = select_recent_items(items, days_back=7, now=NOW, undated_limit=10)

        guids = [i.guid for i, _ in selected]
        self.assertIn("undated-9", guids)
        self.assertNotIn("undated-10", guids)
        self.assertEqual(len(selected), 10)
        self.assertTrue(all(published == EPOCH for _, published in selected))

    def test_undated_position_counts_dated_items(self):
        items = [item(guid=f"old-{i}", iso_date=iso(NOW - timedelta(days=30))) for i in range(10)]
        items.append(item(guid="undated-late"))
        self.assertEqual(select_recent_items(items, days_back=7, now=NOW, undated_limit=10), [])

    def test_date_candidates_in_priority_order(self):
        entry = FeedItem(
            guid="x",
            iso_date=None,
            pub_date="not a date",
            published="Sat, 14 Jun 2025 10:00:00 GMT",
            updated="2020-01-01T00:00:00Z",
        )
        self.assertEqual(resolve_published_at(entry), datetime(2025, 6, 14, 10, 0, 0))

    def test_rfc822_with_timezone_abbreviation_is_normalized_to_utc(self):
        entry = FeedItem(guid="x", pub_date="Sat, 14 Jun 2025 10:00:00 PDT")
        self.assertEqual(resolve_published_at(entry), datetime(2025, 6, 14, 17, 0, 0))


class FeedIngestionTestCase(unittest.TestCase):
    def setUp(self):
        self.db = make_db()
        self.dispatcher = RecordingDispatcher()
        self.scan_repo = ScanRepository(self.db)
        self.queue_repo = ScanQueueRepository(self.db)
        self.article_repo = ArticleRepository(self.db)
        self.feed_repo = FeedRepository(self.db)

    def create_scan(self, **options) -> str:
        return str(self.scan_repo.create_scan(ScanOptions(**options)).id)

    def ingest(self, scan_id, feeds):
        service = FeedIngestionService(self.db, dispatcher=self.dispatcher, feed_reader=fake_reader(feeds))
        return service.ingest(scan_id, now=NOW)


class TestFeedIngestion(FeedIngestionTestCase):
    def test_three_feed_scenario(self):
        recent = iso(NOW - timedelta(days=1))
        old = iso(NOW - timedelta(days=20))
        add_feed(self.db, "a")
        add_feed(self.db, "b")
        add_feed(self.db, "c")
        scan_id = self.create_scan(days_back=7, parallelism=2)

        result = self.ingest(
            scan_id,
            {
                "https://a.example/feed": [
                    item(guid="a1", link="https://a.example/1", iso_date=recent),
                    item(guid="a2", link="https://a.example/2", iso_date=recent),
                    item(guid="a-old", link="https://a.example/old", iso_date=old),
                ],
                "https://b.example/feed": [
                    item(guid="a1", link="https://a.example/1", iso_date=recent),
                    item(guid="b1", link="https://b.example/1", iso_date=recent),
                ],
                "https://c.example/feed": [],
            },
        )

        self.assertEqual(result["status"], "running")
        self.assertEqual(result["new_articles"], 3)
        self.assertEqual(result["failed_feeds"], 0)

        scan = self.scan_repo.find_by_id(scan_id)
        self.assertEqual(scan.status, ScanStatus.RUNNING.value)
        self.assertEqual(scan.total_articles, 3)
        self.assertEqual(scan.processed_articles, 0)

        queue = self.queue_repo.find_by_scan(scan_id)
        queued_guids = [self.article_repo.find_by_id(i).guid for i in queue.article_ids]
        self.assertEqual(queued_guids, ["a1", "a2", "b1"])
        self.assertEqual(self.dispatcher.workers, [(scan_id, 0), (scan_id, 0.1)])

    def test_failed_feed_is_recorded_and_skipped(self):
        ok = add_feed(self.db, "ok")
        broken = add_feed(self.db, "broken")
        scan_id = self.create_scan()

        result = self.ingest(
            scan_id,
            {
                ok.xml_url: [item(guid="g1", iso_date=iso(NOW))],
                broken.xml_url: FeedFetchError("HTTP 500"),
            },
        )

        self.assertEqual(result["failed_feeds"], 1)
        self.assertEqual(result["new_articles"], 1)
        broken_after = self.feed_repo.find_by_id(broken.id)
        self.assertEqual(broken_after.fail_count, 1)
        self.assertIn("HTTP 500", broken_after.last_error)
        ok_after = self.feed_repo.find_by_id(ok.id)
        self.assertEqual(ok_after.fail_count, 0)
        self.assertIsNotNone(ok_after.last_fetched_at)

    def test_unexpected_reader_error_does_not_abort_scan(self):
        broken = add_feed(self.db, "broken", xml_url="http://[::1/feed")
        ok = add_feed(self.db, "ok")
        scan_id = self.create_scan()

        result = self.ingest(
            scan_id,
            {
                broken.xml_url: ValueError("Invalid port: ':1'"),
                ok.xml_url: [item(guid="g1", iso_date=iso(NOW))],
            },
        )

        self.assertEqual(result["status"], "running")
        self.assertEqual(result["failed_feeds"], 1)
        self.assertEqual(result["new_articles"], 1)
        broken_after = self.feed_repo.find_by_id(broken.id)
        self.assertEqual(broken_after.fail_count, 1)
        self.assertIn("ValueError", broken_after.last_error)
        self.assertEqual(self.scan_repo.find_by_id(scan_id).status, ScanStatus.RUNNING.value)

    def test_success_resets_fail_count(self):
        feed = add_feed(self.db, "flaky")
        self.feed_repo.mark_fetch_failure(feed.id, "timeout")
        self.feed_repo.mark_fetch_failure(feed.id, "timeout")
        scan_id = self.create_scan()

        self.ingest(scan_id, {feed.xml_url: []})

        after = self.feed_repo.find_by_id(feed.id)
        self.assertEqual(after.fail_count, 0)
        self.assertIsNone(after.last_error)

    def test_no_new_articles_completes_scan_without_workers(self):
        add_feed(self.db, "a")
        scan_id = self.create_scan()

        result = self.ingest(scan_id, {"https://a.example/feed": []})

        self.assertEqual(result["status"], "completed")
        scan = self.scan_repo.find_by_id(scan_id)
        self.assertEqual(scan.status, ScanStatus.COMPLETED.value)
        self.assertIsNotNone(scan.completed_at)
        self.assertEqual(self.queue_repo.find_by_scan(scan_id).status, ScanQueueStatus.COMPLETED.value)
        self.assertEqual(self.dispatcher.workers, [])

    def test_dedup_is_idempotent_across_scans(self):
        feed = add_feed(self.db, "a")
        feed_items = {feed.xml_url: [item(guid="g1", iso_date=iso(NOW)), item(link="https://a/2", iso_date=iso(NOW))]}

        first = self.create_scan()
        self.assertEqual(self.ingest(first, feed_items)["new_articles"], 2)
        self.scan_repo.mark_completed(first)

        second = self.create_scan()
        result = self.ingest(second, feed_items)

        self.assertEqual(result["new_articles"], 0)
        self.assertEqual(self.article_repo.count(), 2)
        self.assertIsNotNone(self.article_repo.find_by_guid("https://a/2"))

    def test_items_without_guid_or_link_are_dropped(self):
        feed = add_feed(self.db, "a")
        scan_id = self.create_scan()
        result = self.ingest(scan_id, {feed.xml_url: [item(title="no key", iso_date=iso(NOW))]})
        self.assertEqual(result["new_articles"], 0)

    def test_new_articles_are_pending_with_epoch_for_undated(self):
        feed = add_feed(self.db, "a")
        scan_id = self.create_scan()
        self.ingest(scan_id, {feed.xml_url: [item(guid="undated", link="https://a/u")]})

        article = self.article_repo.find_by_guid("undated")
        self.assertEqual(article.status, ArticleStatus.PENDING.value)
        self.assertEqual(article.published_at, EPOCH)
        self.assertEqual(article.source_id, feed.id)

    def test_filter_tags_and_feed_count(self):
        add_feed(self.db, "ai1", tags=["ai"])
        add_feed(self.db, "web", tags=["web"])
        add_feed(self.db, "ai2", tags=["ai", "ml"])
        add_feed(self.db, "ai3", tags=["ml"])
        add_feed(self.db, "nourl", xml_url="", tags=["ai"])
        scan_id = self.create_scan(filter_tags=["ai", "ml"], feed_count=2)

        reader = fake_reader({})
        FeedIngestionService(self.db, dispatcher=self.dispatcher, feed_reader=reader).ingest(scan_id, now=NOW)

        fetched = [c.args[0] for c in reader.fetch_and_parse.call_args_list]
        self.assertEqual(fetched, ["https://ai1.example/feed", "https://ai2.example/feed"])

    def test_workers_capped_by_article_count(self):
        feed = add_feed(self.db, "a")
        scan_id = self.create_scan(parallelism=5)
        self.ingest(scan_id, {feed.xml_url: [item(guid="g1", iso_date=iso(NOW)), item(guid="g2", iso_date=iso(NOW))]})
        self.assertEqual(len(self.dispatcher.workers), 2)


class TestFeedIngestionGuards(FeedIngestionTestCase):
    def test_redelivery_is_noop_once_queue_exists(self):
        feed = add_feed(self.db, "a")
        scan_id = self.create_scan()
        feeds = {feed.xml_url: [item(guid="g1", iso_date=iso(NOW))]}
        self.ingest(scan_id, feeds)

        result = self.ingest(scan_id, feeds)

        self.assertEqual(result, {"status": "skipped", "reason": "already_ingested"})
        self.assertEqual(len(self.dispatcher.workers), 1)

    def test_completed_scan_is_not_ingested(self):
        scan_id = self.create_scan()
        self.scan_repo.mark_completed(scan_id)
        self.assertEqual(self.ingest(scan_id, {})["reason"], "scan_completed")
        self.assertIsNone(self.queue_repo.find_by_scan(scan_id))

    def test_scan_cancelled_during_ingestion_starts_no_workers(self):
        feed = add_feed(self.db, "a")
        scan_id = self.create_scan()

        reader = fake_reader({feed.xml_url: [item(guid="g1", iso_date=iso(NOW))]})
        original = reader.fetch_and_parse.side_effect

        def cancel_then_fetch(url):
            self.scan_repo.mark_completed(scan_id)
            return original(url)

        reader.fetch_and_parse.side_effect = cancel_then_fetch
        result = FeedIngestionService(self.db, dispatcher=self.dispatcher, feed_reader=reader).ingest(scan_id, now=NOW)

        self.assertEqual(result["status"], "cancelled")
        self.assertEqual(self.dispatcher.workers, [])
        self.assertEqual(self.queue_repo.length(scan_id), 0)
        self.assertEqual(self.scan_repo.find_by_id(scan_id).status, ScanStatus.COMPLETED.value)


class TestFeedReader(unittest.TestCase):
    def test_malformed_url_raises_feed_fetch_error(self):
        with self.assertRaises(FeedFetchError):
            FeedReader(timeout=1).fetch_and_parse("http://[::1/feed")


if __name__ == "__main__":
    unittest.main()
