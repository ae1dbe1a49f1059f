"""Shared fixtures: in-memory MongoDB, a recording dispatcher and feed builders."""

import threading
from datetime import datetime
from typing import Dict, List, Optional, Union
from unittest.mock import MagicMock

import mongomock
from bson import ObjectId

from miranda.entities.feed import Feed
from miranda.repositories.feed import FeedRepository
from miranda.services.feed_reader import FeedItem, ParsedFeed
from miranda.services.pipeline_exceptions import FeedFetchError


def make_db():
    return mongomock.MongoClient()["miranda_test"]


class LockedCollection:
    """
    Serializes every collection call behind one lock.

    mongomock is not thread-safe; MongoDB applies each single-document
    operation atomically. The lock gives the in-memory store the same
    per-operation guarantee.
    """

    def __init__(self, collection, lock: Optional[threading.Lock] = None):
        self._collection = collection
        self._lock = lock or threading.Lock()

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not callable(attr):
            return attr

        def locked(*args, **kwargs):
            with self._lock:
                return attr(*args, **kwargs)

        return locked


class RecordingDispatcher:
    """Collects scheduled steps instead of sending them to a broker."""

    def __init__(self):
        self.ingestions: List[tuple] = []
        self.workers: List[tuple] = []

    def start_ingestion(self, scan_id, countdown: float = 0) -> None:
        self.ingestions.append((str(scan_id), countdown))

    def start_worker(self, scan_id, countdown: float = 0) -> None:
        self.workers.append((str(scan_id), countdown))

    def pop_worker(self) -> Optional[str]:
        if not self.workers:
            return None
        scan_id, _ = self.workers.pop(0)
        return scan_id


def add_feed(db, name: str, xml_url: Optional[str] = None, tags: Optional[List[str]] = None) -> Feed:
    return FeedRepository(db).insert_one(
        Feed(name=name, xml_url=xml_url if xml_url is not None else f"https://{name}.example/feed", tags=tags or [])
    )


def item(guid: str = "", link: str = "", title: str = "", iso_date: Optional[str] = None, **dates) -> FeedItem:
    return FeedItem(title=title or guid or link, link=link, guid=guid, iso_date=iso_date, **dates)


def iso(dt: datetime) -> str:
    return dt.isoformat() + "Z"


def fake_reader(feeds: Dict[str, Union[List[FeedItem], Exception]]) -> MagicMock:
    """Feed reader double keyed by xml_url; Exception values are raised."""
    reader = MagicMock()

    def fetch_and_parse(xml_url):
        result = feeds.get(xml_url)
        if result is None:
            raise FeedFetchError(f"no such feed {xml_url}")
        if isinstance(result, Exception):
            raise result
        return ParsedFeed(title=xml_url, items=list(result))

    reader.fetch_and_parse.side_effect = fetch_and_parse
    return reader


def new_ids(count: int) -> List[ObjectId]:
    return [ObjectId() for _ in range(count)]
