"""Database entity models - represents the actual structure stored in MongoDB"""

from .api_usage import ApiUsage
from .article import Article, ArticleScore
from .base import BaseEntity, PyObjectId

# Shared enums
from .enums import (
    ArticleStatus,
    Recommendation,
    ScanQueueStatus,
    ScanStatus,
)
from .feed import Feed

# Scan flow entities
from .scan import Scan, ScanOptions
from .scan_log import ScanLog
from .scan_queue import ScanQueue
from .system_setting import SystemSetting

__all__ = [
    "BaseEntity",
    "PyObjectId",
    # Enums
    "ArticleStatus",
    "Recommendation",
    "ScanQueueStatus",
    "ScanStatus",
    # Scan flow
    "Scan",
    "ScanOptions",
    "ScanQueue",
    "ScanLog",
    # Articles
    "Article",
    "ArticleScore",
    # Other
    "Feed",
    "SystemSetting",
    "ApiUsage",
]
