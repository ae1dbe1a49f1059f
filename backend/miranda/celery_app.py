"""Celery application: broker config, queues and the beat schedule."""

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging
from kombu import Queue

from miranda.config import settings
from miranda.core.logging import setup_logging as configure_logging

celery_app = Celery(
    "miranda",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "miranda.tasks.ingestion",
        "miranda.tasks.article_processing",
        "miranda.tasks.maintenance",
        "miranda.tasks.auto_scan",
        "miranda.tasks.notifications",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    task_default_queue="articles",
    task_queues=(
        Queue("ingestion"),
        Queue("articles"),
        Queue("maintenance"),
    ),
    beat_schedule={
        "check-stalled-scans": {
            "task": "miranda.tasks.maintenance.check_stalled_scans",
            "schedule": float(settings.WATCHDOG_INTERVAL_SECONDS),
        },
        "check-auto-scan": {
            "task": "miranda.tasks.auto_scan.check_and_trigger_scan",
            "schedule": float(settings.AUTO_SCAN_CHECK_SECONDS),
        },
        "check-slack-digest": {
            "task": "miranda.tasks.notifications.check_and_send_digest",
            "schedule": float(settings.SLACK_DIGEST_CHECK_SECONDS),
        },
        "cleanup-scan-logs": {
            "task": "miranda.tasks.maintenance.cleanup_scan_logs",
            "schedule": crontab(hour=3, minute=0),
            "kwargs": {"days": settings.SCAN_LOG_RETENTION_DAYS},
        },
    },
)


@setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    configure_logging()
