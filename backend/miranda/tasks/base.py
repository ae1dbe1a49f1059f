"""Base class for pipeline tasks."""

import logging
from typing import Any, Optional

from celery import Task
from pymongo.database import Database

from miranda.core.tracing import TracingContext
from miranda.database.mongo import get_database

logger = logging.getLogger(__name__)


class PipelineTask(Task):
    """
    Gives tasks a lazily opened `db` and per-task tracing context.

    scan_id (first positional arg or kwarg) is put on the tracing context
    so every log line of the task carries it.
    """

    abstract = True
    _db: Optional[Database] = None

    @property
    def db(self) -> Database:
        if self._db is None:
            self._db = get_database()
        return self._db

    def before_start(self, task_id: str, args: tuple, kwargs: dict) -> None:
        scan_id = kwargs.get("scan_id") or (args[0] if args else None)
        TracingContext.set(
            correlation_id=kwargs.get("correlation_id") or task_id,
            scan_id=str(scan_id) if scan_id else "",
            task_name=self.name,
        )

    def on_failure(self, exc: Exception, task_id: str, args: tuple, kwargs: dict, einfo: Any) -> None:
        logger.error(f"Task {self.name} [{task_id}] failed: {exc}", exc_info=exc)

    def after_return(
        self, status: str, retval: Any, task_id: str, args: tuple, kwargs: dict, einfo: Any
    ) -> None:
        TracingContext.clear()
