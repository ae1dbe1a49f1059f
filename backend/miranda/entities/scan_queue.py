"""
ScanQueue Entity - Ordered article ids awaiting processing for one scan.

The list only ever shrinks from the front. Once empty, status is
COMPLETED and it is never refilled.

Collection: scan_queues
"""

from typing import List

from pydantic import Field

from .base import BaseEntity, PyObjectId
from .enums import ScanQueueStatus


class ScanQueue(BaseEntity):
    scan_id: PyObjectId
    status: ScanQueueStatus = ScanQueueStatus.PROCESSING
    article_ids: List[PyObjectId] = Field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.article_ids)
