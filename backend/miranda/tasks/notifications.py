import logging
from typing import Any, Dict

from celery import shared_task

from miranda.database.mongo import get_database
from miranda.services.notification_service import SlackDigestService

logger = logging.getLogger(__name__)


@shared_task(
    name="miranda.tasks.notifications.check_and_send_digest",
    bind=True,
    queue="maintenance",
)
def check_and_send_digest(self) -> Dict[str, Any]:
    """Post the Slack digest of unnotified recommended articles when due."""
    return SlackDigestService(get_database()).check_and_send_digest()
