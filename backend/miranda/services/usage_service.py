"""Aggregates of scoring API usage."""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pymongo.database import Database

from miranda.repositories.api_usage import ApiUsageRepository
from miranda.utils.datetime import utc_now


class UsageService:
    def __init__(self, db: Database):
        self.repo = ApiUsageRepository(db)

    def get_summary(
        self,
        days: int = 30,
        recent_limit: int = 20,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Totals, per-model and per-day aggregates plus the latest calls."""
        days = max(1, min(days, 90))
        recent_limit = max(1, min(recent_limit, 100))
        now = now or utc_now()
        since = now - timedelta(days=days)

        per_day: "OrderedDict[str, Dict[str, int]]" = OrderedDict()
        for offset in range(days - 1, -1, -1):
            day = (now - timedelta(days=offset)).date().isoformat()
            per_day[day] = {"calls": 0, "total_tokens": 0}
        for record in self.repo.list_since(since):
            day = record.created_at.date().isoformat()
            bucket = per_day.setdefault(day, {"calls": 0, "total_tokens": 0})
            bucket["calls"] += 1
            bucket["total_tokens"] += record.total_tokens

        return {
            "days": days,
            "totals": self.repo.totals_since(since),
            "by_model": self.repo.by_model_since(since),
            "by_day": [{"date": day, **values} for day, values in per_day.items()],
            "recent": self.repo.recent(recent_limit),
        }
