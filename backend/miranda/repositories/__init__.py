"""Repository layer for database operations"""

from .api_usage import ApiUsageRepository
from .article import ArticleRepository
from .base import BaseRepository
from .feed import FeedRepository

# Scan flow repositories
from .scan import ScanRepository
from .scan_log import ScanLogRepository
from .scan_queue import ScanQueueRepository
from .system_setting import SystemSettingRepository

__all__ = [
    "BaseRepository",
    # Scan flow
    "ScanRepository",
    "ScanQueueRepository",
    "ScanLogRepository",
    # Articles and sources
    "ArticleRepository",
    "FeedRepository",
    # Other
    "SystemSettingRepository",
    "ApiUsageRepository",
]
