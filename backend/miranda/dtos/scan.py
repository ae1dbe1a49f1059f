"""DTOs for the scan API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from miranda.entities.scan import Scan
from miranda.entities.scan_log import ScanLog

# ============================================================================
# Requests
# ============================================================================


class StartScanRequest(BaseModel):
    feed_count: int = Field(0, ge=0, description="Max feeds to read (0 = all)")
    days_back: int = Field(7, ge=1, le=365)
    parallelism: int = Field(3, ge=1, le=50)
    filter_tags: List[str] = Field(default_factory=list)
    delay_seconds: float = Field(0, ge=0, le=3600)


# ============================================================================
# Responses
# ============================================================================


class ScanOptionsDTO(BaseModel):
    feed_count: int
    days_back: int
    parallelism: int
    filter_tags: List[str]


class ScanDTO(BaseModel):
    id: str
    status: str
    options: ScanOptionsDTO
    total_articles: int
    processed_articles: int
    progress_percentage: float
    error: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, scan: Scan) -> "ScanDTO":
        return cls(
            id=str(scan.id),
            status=scan.status,
            options=ScanOptionsDTO(**scan.options.model_dump()),
            total_articles=scan.total_articles,
            processed_articles=scan.processed_articles,
            progress_percentage=scan.progress_percentage,
            error=scan.error,
            created_at=scan.created_at,
            completed_at=scan.completed_at,
            last_activity_at=scan.last_activity_at,
        )


class StartScanResponse(BaseModel):
    scan_id: str


class RunningScanResponse(BaseModel):
    scan: Optional[ScanDTO] = None


class ScanQueueDTO(BaseModel):
    scan_id: str
    length: int


class ScanLogDTO(BaseModel):
    message: str
    level: str
    created_at: datetime

    @classmethod
    def from_entity(cls, log: ScanLog) -> "ScanLogDTO":
        return cls(message=log.message, level=log.level, created_at=log.created_at)
