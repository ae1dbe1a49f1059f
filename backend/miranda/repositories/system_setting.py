"""Repository for SystemSetting key/value pairs."""

from typing import Any, Optional

from pymongo.database import Database

from miranda.entities.system_setting import SystemSetting
from miranda.utils.datetime import utc_now

from .base import BaseRepository


class SystemSettingRepository(BaseRepository[SystemSetting]):
    def __init__(self, db: Database):
        super().__init__(db, "system_settings", SystemSetting)

    def get_value(self, key: str, default: Any = None) -> Any:
        doc = self.collection.find_one({"key": key})
        if doc is None:
            return default
        return doc.get("value", default)

    def set_value(self, key: str, value: Any) -> Optional[SystemSetting]:
        now = utc_now()
        return self.find_one_and_update(
            {"key": key},
            {"$set": {"value": value, "updated_at": now}, "$setOnInsert": {"created_at": now}},
            upsert=True,
        )
