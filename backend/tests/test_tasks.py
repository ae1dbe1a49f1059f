import unittest
from datetime import timedelta
from unittest.mock import patch

from bson import ObjectId

from miranda.repositories.scan_log import ScanLogRepository
from miranda.tasks.dispatch import ScanDispatcher
from miranda.tasks.maintenance import check_stalled_scans, cleanup_scan_logs
from miranda.utils.datetime import utc_now
from tests.support import make_db


class TestScanDispatcher(unittest.TestCase):
    @patch("miranda.tasks.ingestion.parse_feeds.apply_async")
    def test_start_ingestion(self, mock_apply):
        scan_id = ObjectId()
        ScanDispatcher().start_ingestion(scan_id, countdown=5)
        mock_apply.assert_called_once_with(args=[str(scan_id)], countdown=5)

    @patch("miranda.tasks.article_processing.process_next_article.apply_async")
    def test_start_worker_without_delay(self, mock_apply):
        ScanDispatcher().start_worker("abc")
        mock_apply.assert_called_once_with(args=["abc"], countdown=None)


class TestMaintenanceTasks(unittest.TestCase):
    def setUp(self):
        self.db = make_db()
        patcher = patch("miranda.tasks.maintenance.get_database", return_value=self.db)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_cleanup_scan_logs_keeps_recent_lines(self):
        repo = ScanLogRepository(self.db)
        scan_id = ObjectId()
        repo.append(scan_id, "old")
        repo.collection.update_one({"message": "old"}, {"$set": {"created_at": utc_now() - timedelta(days=40)}})
        repo.append(scan_id, "new")

        result = cleanup_scan_logs.run(days=30)

        self.assertEqual(result["deleted_count"], 1)
        self.assertEqual([log.message for log in repo.list_for_scan(scan_id)], ["new"])

    def test_check_stalled_scans_with_nothing_active(self):
        self.assertEqual(
            check_stalled_scans.run(),
            {"scans_checked": 0, "timed_out": 0, "repaired": 0, "restarted": 0},
        )


if __name__ == "__main__":
    unittest.main()
