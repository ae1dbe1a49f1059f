"""Feed API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pymongo.database import Database

from miranda.database.mongo import get_db
from miranda.dtos.feed import FeedDTO, FeedImportRequest, FeedImportResponse
from miranda.entities.feed import Feed
from miranda.repositories.feed import FeedRepository

router = APIRouter(prefix="/feeds", tags=["Feeds"])


@router.get("", response_model=List[FeedDTO])
def list_feeds(tag: Optional[str] = None, db: Database = Depends(get_db)):
    return [FeedDTO.from_entity(f) for f in FeedRepository(db).list_all(tag=tag)]


@router.post("/import", response_model=FeedImportResponse)
def import_feeds(request: FeedImportRequest, db: Database = Depends(get_db)):
    """Bulk-create feeds. Feeds whose xml_url already exists are skipped."""
    feeds = [Feed(**item.model_dump()) for item in request.feeds]
    created = FeedRepository(db).bulk_create(feeds)
    return FeedImportResponse(created=created, skipped=len(feeds) - created)
