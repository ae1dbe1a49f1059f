"""RSS/Atom feed fetching and normalization."""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import feedparser
import httpx

from miranda.config import settings
from miranda.services.pipeline_exceptions import FeedFetchError

logger = logging.getLogger(__name__)


@dataclass
class FeedItem:
    """One feed entry with the raw date candidates it carried."""

    title: str = ""
    link: str = ""
    guid: str = ""
    iso_date: Optional[str] = None
    pub_date: Optional[str] = None
    published: Optional[str] = None
    updated: Optional[str] = None
    date: Optional[str] = None

    @property
    def date_candidates(self) -> List[Optional[str]]:
        """Date strings in priority order."""
        return [self.iso_date, self.pub_date, self.published, self.updated, self.date]

    @property
    def dedup_key(self) -> str:
        return (self.guid or self.link or "").strip()


@dataclass
class ParsedFeed:
    title: str = ""
    items: List[FeedItem] = field(default_factory=list)


def _entry_value(entry: Any, key: str) -> Optional[str]:
    value = entry.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _normalize_entry(entry: Any) -> FeedItem:
    # feedparser maps RSS pubDate and Atom published onto "published",
    # Atom updated onto "updated" and dc:date onto "updated"/"date".
    return FeedItem(
        title=(entry.get("title") or "").strip(),
        link=(entry.get("link") or "").strip(),
        guid=(entry.get("id") or "").strip(),
        iso_date=_entry_value(entry, "isodate"),
        pub_date=_entry_value(entry, "pubdate"),
        published=_entry_value(entry, "published"),
        updated=_entry_value(entry, "updated"),
        date=_entry_value(entry, "date") or _entry_value(entry, "dc_date"),
    )


class FeedReader:
    """Downloads a feed with httpx and parses it with feedparser."""

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = timeout or settings.FEED_FETCH_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.HTTP_USER_AGENT

    def fetch_and_parse(self, xml_url: str) -> ParsedFeed:
        try:
            response = httpx.get(
                xml_url,
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FeedFetchError(f"Failed to fetch {xml_url}: {e}") from e

        return self.parse(response.content, source=xml_url)

    def parse(self, content: bytes | str, source: str = "") -> ParsedFeed:
        parsed = feedparser.parse(content)
        if parsed.bozo and not parsed.entries:
            raise FeedFetchError(f"Failed to parse {source or 'feed'}: {parsed.get('bozo_exception')}")

        items = [_normalize_entry(entry) for entry in parsed.entries]
        logger.debug(f"Parsed {len(items)} items from {source}")
        return ParsedFeed(title=parsed.feed.get("title", ""), items=items)
