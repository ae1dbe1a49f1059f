"""API usage endpoints."""

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database

from miranda.database.mongo import get_db
from miranda.dtos.usage import UsageRecordDTO, UsageSummaryResponse
from miranda.services.usage_service import UsageService

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get("/summary", response_model=UsageSummaryResponse)
def get_usage_summary(
    days: int = Query(30),
    recent_limit: int = Query(20),
    db: Database = Depends(get_db),
):
    """Token usage of the scoring model. days is clamped to 1-90, recent_limit to 1-100."""
    summary = UsageService(db).get_summary(days=days, recent_limit=recent_limit)
    summary["recent"] = [UsageRecordDTO.from_entity(r) for r in summary["recent"]]
    return summary
