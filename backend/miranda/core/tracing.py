"""
Tracing Context - Thread-safe context management for distributed tracing.

This module provides a centralized way to manage tracing context across
Celery tasks and API requests. It uses Python's contextvars for thread-safety.

Usage:
    # Set context at the start of a task
    TracingContext.set(scan_id="abc-123", task_name="process_next_article")

    # Get context (automatically added to JSONFormatter logs)
    ctx = TracingContext.get()

    # Clear context at the end
    TracingContext.clear()
"""

import uuid
from contextvars import ContextVar
from typing import Dict

# Thread-safe context variables
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_scan_id: ContextVar[str] = ContextVar("scan_id", default="")
_article_id: ContextVar[str] = ContextVar("article_id", default="")
_task_name: ContextVar[str] = ContextVar("task_name", default="")


class TracingContext:
    """Thread-safe tracing context for distributed tracing."""

    @staticmethod
    def set(
        correlation_id: str = "",
        scan_id: str = "",
        article_id: str = "",
        task_name: str = "",
    ) -> None:
        """Set tracing context for current execution."""
        if correlation_id:
            _correlation_id.set(correlation_id)
        if scan_id:
            _scan_id.set(scan_id)
        if article_id:
            _article_id.set(article_id)
        if task_name:
            _task_name.set(task_name)

    @staticmethod
    def get() -> Dict[str, str]:
        """Get current tracing context as dict."""
        return {
            "correlation_id": _correlation_id.get(),
            "scan_id": _scan_id.get(),
            "article_id": _article_id.get(),
            "task_name": _task_name.get(),
        }

    @staticmethod
    def get_correlation_id() -> str:
        return _correlation_id.get()

    @staticmethod
    def get_or_create_correlation_id() -> str:
        """Get current correlation ID or create a new one."""
        corr_id = _correlation_id.get()
        if not corr_id:
            corr_id = str(uuid.uuid4())
            _correlation_id.set(corr_id)
        return corr_id

    @staticmethod
    def get_log_prefix() -> str:
        """Get a formatted prefix for manual logging."""
        scan_id = _scan_id.get()
        if scan_id:
            return f"[scan={scan_id[-8:]}]"
        return ""

    @staticmethod
    def clear() -> None:
        """Clear all tracing context."""
        _correlation_id.set("")
        _scan_id.set("")
        _article_id.set("")
        _task_name.set("")
