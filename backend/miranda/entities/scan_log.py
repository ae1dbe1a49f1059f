"""
ScanLog Entity - Append-only narration of a scan's steps.

Collection: scan_logs
"""

from pydantic import Field

from .base import BaseEntity, PyObjectId


class ScanLog(BaseEntity):
    scan_id: PyObjectId
    message: str = Field(default="", description="Log message content")
    level: str = Field(default="INFO", description="INFO, WARNING or ERROR")
