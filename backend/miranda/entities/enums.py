"""Shared enums for pipeline entities."""

from enum import Enum


class ScanStatus(str, Enum):
    """Scan lifecycle. Failure is COMPLETED plus an error message."""

    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"


class ScanQueueStatus(str, Enum):
    AWAITING = "awaiting"
    PROCESSING = "processing"
    COMPLETED = "completed"


class ArticleStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Recommendation(str, Enum):
    HIGHLY_RECOMMENDED = "highly_recommended"
    RECOMMENDED = "recommended"
    MAYBE = "maybe"
    NOT_RECOMMENDED = "not_recommended"


NOTIFIABLE_RECOMMENDATIONS = (
    Recommendation.HIGHLY_RECOMMENDED.value,
    Recommendation.RECOMMENDED.value,
)
