"""Repository for ApiUsage records."""

from datetime import datetime
from typing import Any, Dict, List

from pymongo.database import Database

from miranda.entities.api_usage import ApiUsage

from .base import BaseRepository


class ApiUsageRepository(BaseRepository[ApiUsage]):
    def __init__(self, db: Database):
        super().__init__(db, "api_usage", ApiUsage)

    def record(self, usage: ApiUsage) -> ApiUsage:
        return self.insert_one(usage)

    def totals_since(self, since: datetime) -> Dict[str, int]:
        rows = list(
            self.collection.aggregate(
                [
                    {"$match": {"created_at": {"$gte": since}}},
                    {
                        "$group": {
                            "_id": None,
                            "calls": {"$sum": 1},
                            "prompt_tokens": {"$sum": "$prompt_tokens"},
                            "completion_tokens": {"$sum": "$completion_tokens"},
                            "total_tokens": {"$sum": "$total_tokens"},
                        }
                    },
                ]
            )
        )
        if not rows:
            return {"calls": 0, "prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
        row = rows[0]
        row.pop("_id", None)
        return row

    def by_model_since(self, since: datetime) -> List[Dict[str, Any]]:
        rows = self.collection.aggregate(
            [
                {"$match": {"created_at": {"$gte": since}}},
                {
                    "$group": {
                        "_id": "$model",
                        "calls": {"$sum": 1},
                        "total_tokens": {"$sum": "$total_tokens"},
                    }
                },
                {"$sort": {"total_tokens": -1}},
            ]
        )
        return [
            {"model": r["_id"], "calls": r["calls"], "total_tokens": r["total_tokens"]}
            for r in rows
        ]

    def list_since(self, since: datetime) -> List[ApiUsage]:
        return self.find_many({"created_at": {"$gte": since}}, sort=[("created_at", 1)])

    def recent(self, limit: int) -> List[ApiUsage]:
        return self.find_many({}, sort=[("created_at", -1)], limit=limit)
