"""Typed access to the key/value system settings store."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError
from pymongo.database import Database

from miranda.repositories.system_setting import SystemSettingRepository

logger = logging.getLogger(__name__)

AUTO_SCAN_KEY = "auto_scan"
SLACK_KEY = "slack"

S = TypeVar("S", bound=BaseModel)


class AutoScanSettings(BaseModel):
    enabled: bool = False
    interval_minutes: int = Field(240, ge=5, le=7 * 24 * 60)
    days_back: int = Field(7, ge=1, le=365)
    parallelism: int = Field(3, ge=1, le=50)
    filter_tags: List[str] = Field(default_factory=list)
    last_run_at: Optional[datetime] = None


class SlackSettings(BaseModel):
    enabled: bool = False
    notify_interval_minutes: int = Field(60, ge=5, le=7 * 24 * 60)
    top_article_count: int = Field(5, ge=1, le=50)
    last_notified_at: Optional[datetime] = None


class SettingsService:
    def __init__(self, db: Database):
        self.repo = SystemSettingRepository(db)

    def _load(self, key: str, model: Type[S]) -> S:
        raw = self.repo.get_value(key) or {}
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Invalid stored settings for {key}, using defaults: {e.error_count()} errors")
            return model()

    def _save(self, key: str, value: BaseModel) -> None:
        self.repo.set_value(key, value.model_dump())

    def _update(self, key: str, model: Type[S], updates: Dict[str, Any]) -> S:
        current = self._load(key, model)
        merged = model.model_validate({**current.model_dump(), **updates})
        self._save(key, merged)
        return merged

    def get_auto_scan(self) -> AutoScanSettings:
        return self._load(AUTO_SCAN_KEY, AutoScanSettings)

    def update_auto_scan(self, updates: Dict[str, Any]) -> AutoScanSettings:
        return self._update(AUTO_SCAN_KEY, AutoScanSettings, updates)

    def get_slack(self) -> SlackSettings:
        return self._load(SLACK_KEY, SlackSettings)

    def update_slack(self, updates: Dict[str, Any]) -> SlackSettings:
        return self._update(SLACK_KEY, SlackSettings, updates)
