import unittest
from datetime import datetime, timedelta

from miranda.entities.enums import ScanQueueStatus, ScanStatus
from miranda.entities.scan import ScanOptions
from miranda.repositories.scan import ScanRepository
from miranda.repositories.scan_queue import ScanQueueRepository
from miranda.services.watchdog import INIT_TIMEOUT_ERROR, ScanWatchdog
from tests.support import RecordingDispatcher, make_db, new_ids

NOW = datetime(2025, 6, 15, 12, 0, 0)


class TestScanWatchdog(unittest.TestCase):
    def setUp(self):
        self.db = make_db()
        self.dispatcher = RecordingDispatcher()
        self.scan_repo = ScanRepository(self.db)
        self.queue_repo = ScanQueueRepository(self.db)
        self.watchdog = ScanWatchdog(
            self.db,
            dispatcher=self.dispatcher,
            init_timeout_minutes=5,
            stall_timeout_minutes=30,
        )

    def make_scan(self, created_minutes_ago: float, **fields):
        scan = self.scan_repo.create_scan(ScanOptions())
        updates = {"created_at": NOW - timedelta(minutes=created_minutes_ago), **fields}
        self.scan_repo.collection.update_one({"_id": scan.id}, {"$set": updates})
        return scan.id

    def test_times_out_scan_stuck_initializing(self):
        scan_id = self.make_scan(created_minutes_ago=6)

        summary = self.watchdog.run(now=NOW)

        self.assertEqual(summary["timed_out"], 1)
        scan = self.scan_repo.find_by_id(scan_id)
        self.assertEqual(scan.status, ScanStatus.COMPLETED.value)
        self.assertEqual(scan.error, INIT_TIMEOUT_ERROR)
        self.assertEqual(self.dispatcher.workers, [])

    def test_recent_initializing_scan_is_left_alone(self):
        scan_id = self.make_scan(created_minutes_ago=4)

        summary = self.watchdog.run(now=NOW)

        self.assertEqual(summary, {"scans_checked": 1, "timed_out": 0, "repaired": 0, "restarted": 0})
        self.assertEqual(self.scan_repo.find_by_id(scan_id).status, ScanStatus.INITIALIZING.value)

    def test_repairs_queue_marked_completed_with_items(self):
        scan_id = self.make_scan(
            created_minutes_ago=2,
            status=ScanStatus.RUNNING.value,
            last_activity_at=NOW - timedelta(minutes=1),
        )
        self.queue_repo.create(scan_id, new_ids(2))
        self.queue_repo.collection.update_one(
            {"scan_id": scan_id}, {"$set": {"status": ScanQueueStatus.COMPLETED.value}}
        )

        first = self.watchdog.run(now=NOW)
        second = self.watchdog.run(now=NOW)

        self.assertEqual(first["repaired"], 1)
        self.assertEqual(second["repaired"], 0)
        self.assertEqual(self.queue_repo.find_by_scan(scan_id).status, ScanQueueStatus.PROCESSING.value)
        self.assertEqual(self.dispatcher.workers, [(str(scan_id), 0)])

    def test_restarts_stalled_scan_once_per_window(self):
        scan_id = self.make_scan(
            created_minutes_ago=90,
            status=ScanStatus.RUNNING.value,
            last_activity_at=NOW - timedelta(minutes=31),
        )
        self.queue_repo.create(scan_id, new_ids(3))

        first = self.watchdog.run(now=NOW)
        second = self.watchdog.run(now=NOW + timedelta(seconds=30))

        self.assertEqual(first["restarted"], 1)
        self.assertEqual(second["restarted"], 0)
        self.assertEqual(len(self.dispatcher.workers), 1)
        self.assertEqual(self.scan_repo.find_by_id(scan_id).last_activity_at, NOW)

        later = self.watchdog.run(now=NOW + timedelta(minutes=31))
        self.assertEqual(later["restarted"], 1)
        self.assertEqual(len(self.dispatcher.workers), 2)

    def test_stall_falls_back_to_created_at(self):
        self.make_scan(created_minutes_ago=45, status=ScanStatus.RUNNING.value)
        scan_id = self.scan_repo.find_active().id
        self.queue_repo.create(scan_id, new_ids(1))
        self.scan_repo.collection.update_one({"_id": scan_id}, {"$unset": {"last_activity_at": ""}})

        self.assertEqual(self.watchdog.run(now=NOW)["restarted"], 1)

    def test_healthy_running_scan_is_untouched(self):
        scan_id = self.make_scan(
            created_minutes_ago=120,
            status=ScanStatus.RUNNING.value,
            last_activity_at=NOW - timedelta(minutes=2),
        )
        self.queue_repo.create(scan_id, new_ids(5))
        before = self.scan_repo.collection.find_one({"_id": scan_id})

        summary = self.watchdog.run(now=NOW)

        self.assertEqual(summary["restarted"] + summary["repaired"] + summary["timed_out"], 0)
        self.assertEqual(self.scan_repo.collection.find_one({"_id": scan_id}), before)
        self.assertEqual(self.dispatcher.workers, [])

    def test_completed_scans_are_not_checked(self):
        scan_id = self.make_scan(created_minutes_ago=600)
        self.scan_repo.mark_completed(scan_id)
        self.assertEqual(self.watchdog.run(now=NOW)["scans_checked"], 0)


if __name__ == "__main__":
    unittest.main()
