"""Main-text extraction for article pages."""

import logging
from typing import Optional

import httpx
import trafilatura

from miranda.config import settings
from miranda.services.pipeline_exceptions import ContentExtractionError

logger = logging.getLogger(__name__)


class ContentExtractor:
    """Downloads an article with httpx and extracts its text with trafilatura."""

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = timeout or settings.ARTICLE_FETCH_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.HTTP_USER_AGENT

    def extract(self, url: str) -> str:
        """
        Return the article's main text.

        An empty string means the page downloaded but held no extractable
        text; the analyzer then works from the title alone.
        """
        try:
            response = httpx.get(
                url,
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ContentExtractionError(f"Failed to download {url}: {e}") from e

        text = trafilatura.extract(response.text, url=url, include_comments=False)
        if not text:
            logger.warning(f"No extractable text for {url}")
            return ""
        return text.strip()
