"""DTOs for runtime settings updates. Only provided fields are changed."""

from typing import List, Optional

from pydantic import BaseModel, Field


class AutoScanSettingsUpdate(BaseModel):
    enabled: Optional[bool] = None
    interval_minutes: Optional[int] = Field(None, ge=5)
    days_back: Optional[int] = Field(None, ge=1, le=365)
    parallelism: Optional[int] = Field(None, ge=1, le=50)
    filter_tags: Optional[List[str]] = None


class SlackSettingsUpdate(BaseModel):
    enabled: Optional[bool] = None
    notify_interval_minutes: Optional[int] = Field(None, ge=5)
    top_article_count: Optional[int] = Field(None, ge=1, le=50)
