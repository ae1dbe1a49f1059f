"""ApiUsage entity - token usage of one scoring call."""

from typing import Optional

from .base import BaseEntity, PyObjectId


class ApiUsage(BaseEntity):
    provider: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    scan_id: Optional[PyObjectId] = None
    article_id: Optional[PyObjectId] = None
