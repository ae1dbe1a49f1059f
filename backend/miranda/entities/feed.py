"""Feed entity - an RSS/Atom source and its fetch health."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import BaseEntity


class Feed(BaseEntity):
    name: str
    xml_url: str
    html_url: str = ""
    type: str = "rss"
    tags: List[str] = Field(default_factory=list)

    # Health, written only by feed ingestion
    last_fetched_at: Optional[datetime] = None
    last_error: Optional[str] = None
    fail_count: int = 0
