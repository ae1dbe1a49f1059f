"""
Scan Entity - One end-to-end run of feed ingestion and article processing.

Collection: scans
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .base import BaseEntity
from .enums import ScanStatus


class ScanOptions(BaseModel):
    """Options captured when the scan is created. Never modified afterwards."""

    feed_count: int = Field(0, ge=0, description="Cap on feeds to read (0 = all matching)")
    days_back: int = Field(7, ge=1, le=365)
    parallelism: int = Field(3, ge=1, le=50)
    filter_tags: List[str] = Field(default_factory=list)


class Scan(BaseEntity):
    """Root state object for one pipeline run."""

    status: ScanStatus = ScanStatus.INITIALIZING
    options: ScanOptions = Field(default_factory=ScanOptions)

    total_articles: int = 0
    processed_articles: int = 0

    error: Optional[str] = None
    completed_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None

    # Present only while the scan is not completed; backs the
    # one-active-scan partial unique index.
    active: Optional[bool] = True

    @property
    def is_completed(self) -> bool:
        return self.status == ScanStatus.COMPLETED.value

    @property
    def progress_percentage(self) -> float:
        if not self.total_articles:
            return 100.0 if self.is_completed else 0.0
        return round(self.processed_articles / self.total_articles * 100, 1)
