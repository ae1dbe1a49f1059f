"""DTOs for the usage API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from miranda.entities.api_usage import ApiUsage


class UsageTotalsDTO(BaseModel):
    calls: int
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class UsageByModelDTO(BaseModel):
    model: str
    calls: int
    total_tokens: int


class UsageByDayDTO(BaseModel):
    date: str
    calls: int
    total_tokens: int


class UsageRecordDTO(BaseModel):
    model: str
    provider: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    scan_id: Optional[str] = None
    article_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, usage: ApiUsage) -> "UsageRecordDTO":
        return cls(
            model=usage.model,
            provider=usage.provider,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            scan_id=str(usage.scan_id) if usage.scan_id else None,
            article_id=str(usage.article_id) if usage.article_id else None,
            created_at=usage.created_at,
        )


class UsageSummaryResponse(BaseModel):
    days: int
    totals: UsageTotalsDTO
    by_model: List[UsageByModelDTO]
    by_day: List[UsageByDayDTO]
    recent: List[UsageRecordDTO]
