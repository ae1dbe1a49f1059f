from __future__ import annotations

"""
MongoDB connection helpers.
"""

import logging
from typing import Generator

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        # Import settings lazily to ensure env vars are loaded
        from miranda.config import settings

        logger.info("Initializing MongoClient for database %s", settings.MONGODB_DB_NAME)
        _client = MongoClient(settings.MONGODB_URI)
    return _client


def get_database() -> Database:
    # Import settings lazily
    from miranda.config import settings

    client = get_client()
    return client[settings.MONGODB_DB_NAME]


def get_db() -> Generator[Database, None, None]:
    db = get_database()
    try:
        yield db
    finally:
        # PyMongo manages connection pooling automatically; nothing to close here.
        pass


def ensure_indexes(db: Database) -> None:
    """
    Create the indexes the pipeline relies on.

    Two of them carry invariants rather than just speeding up lookups:
    - articles.guid is unique, so deduplication is race-free.
    - scans.active is a partial unique index, so at most one
      non-completed scan can exist even under concurrent starts.
    """
    db["scans"].create_index(
        "active",
        unique=True,
        partialFilterExpression={"active": True},
        name="one_active_scan",
    )
    db["scans"].create_index([("created_at", DESCENDING)])
    db["scans"].create_index("status")

    db["scan_queues"].create_index("scan_id", unique=True)
    db["scan_queues"].create_index("status")

    db["articles"].create_index("guid", unique=True)
    db["articles"].create_index([("status", ASCENDING), ("published_at", DESCENDING)])
    db["articles"].create_index("recommendation")

    db["feeds"].create_index("xml_url", unique=True)
    db["feeds"].create_index("tags")

    db["scan_logs"].create_index([("scan_id", ASCENDING), ("created_at", ASCENDING)])
    db["system_settings"].create_index("key", unique=True)
    db["api_usage"].create_index([("created_at", DESCENDING)])
