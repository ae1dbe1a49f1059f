"""
Slack notifications for recommended articles.

Articles are sent through a Slack Incoming Webhook as a Block Kit digest.
Each article is sent at most once (tracked by `slack_notified_at`).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pymongo.database import Database

from miranda.config import settings
from miranda.services.article_service import ArticleService
from miranda.services.settings_service import SettingsService
from miranda.templates import slack_templates
from miranda.utils.datetime import minutes_since, utc_now

logger = logging.getLogger(__name__)


class NotificationManager:
    """Outbound Slack webhook client."""

    def __init__(self, slack_webhook_url: Optional[str] = None):
        self.slack_webhook_url = slack_webhook_url or settings.SLACK_WEBHOOK_URL

    @property
    def slack_configured(self) -> bool:
        return bool(self.slack_webhook_url)

    def send_slack_sync(self, blocks: List[Dict[str, Any]], text: str = "") -> bool:
        """Send a Slack message via Incoming Webhook."""
        if not self.slack_webhook_url:
            logger.debug("Slack webhook not configured")
            return False

        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.post(
                    self.slack_webhook_url,
                    json={"blocks": blocks, "text": text},
                )
        except httpx.HTTPError as e:
            logger.error(f"Slack error: {e}")
            return False

        if response.status_code == 200:
            logger.info("Slack notification sent")
            return True
        logger.warning(f"Slack failed: {response.status_code}")
        return False


class SlackDigestService:
    def __init__(
        self,
        db: Database,
        manager: Optional[NotificationManager] = None,
    ):
        self.articles = ArticleService(db)
        self.settings = SettingsService(db)
        self.manager = manager or NotificationManager()

    def check_and_send_digest(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Send the next digest when enabled, due and non-empty."""
        now = now or utc_now()
        config = self.settings.get_slack()

        if not config.enabled:
            return {"sent": False, "reason": "disabled"}
        if not self.manager.slack_configured:
            return {"sent": False, "reason": "webhook_not_configured"}
        if (
            config.last_notified_at is not None
            and minutes_since(config.last_notified_at, now) < config.notify_interval_minutes
        ):
            return {"sent": False, "reason": "interval_not_elapsed"}

        articles = self.articles.unnotified_recommended_articles(config.top_article_count)
        if not articles:
            return {"sent": False, "reason": "no_articles"}

        message = slack_templates.recommended_articles_digest(articles)
        if not self.manager.send_slack_sync(blocks=message["blocks"], text=message["text"]):
            return {"sent": False, "reason": "send_failed"}

        self.articles.mark_notified([a.id for a in articles])
        self.settings.update_slack({"last_notified_at": now})
        logger.info(f"Slack digest sent with {len(articles)} articles")
        return {"sent": True, "article_count": len(articles)}

    def send_test_message(self) -> bool:
        message = slack_templates.connection_test_message()
        return self.manager.send_slack_sync(blocks=message["blocks"], text=message["text"])
