"""Custom exceptions for the scan pipeline."""
from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    status_code = 500


class PipelineConfigurationError(PipelineError):
    """Raised when required configuration is missing."""


class PipelineRetryableError(PipelineError):
    """Raised for transient issues where retrying later may succeed."""
    def __init__(self, message: str, retry_after: int | float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class ScanError(PipelineError):
    """Base for scan controller precondition failures. Never mutate state."""


class ScanAlreadyRunningError(ScanError):
    status_code = 409

    def __init__(self, scan_id: str | None = None):
        super().__init__("A scan is already running")
        self.scan_id = scan_id


class ScanNotFoundError(ScanError):
    status_code = 404

    def __init__(self, scan_id: str):
        super().__init__(f"Scan {scan_id} not found")
        self.scan_id = scan_id


class ScanAlreadyCompletedError(ScanError):
    status_code = 409

    def __init__(self, scan_id: str):
        super().__init__(f"Scan {scan_id} is already completed")
        self.scan_id = scan_id


class ArticleNotFoundError(PipelineError):
    status_code = 404

    def __init__(self, article_id: str):
        super().__init__(f"Article {article_id} not found")
        self.article_id = article_id


class ArticleNotRetryableError(PipelineError):
    status_code = 409

    def __init__(self, article_id: str, status: str):
        super().__init__(f"Article {article_id} is {status}; only failed articles can be retried")
        self.article_id = article_id
        self.status = status


class FeedFetchError(PipelineError):
    """Raised when a feed cannot be downloaded or parsed."""
    status_code = 502


class ContentExtractionError(PipelineError):
    """Raised when article text cannot be downloaded or extracted."""
    status_code = 502


class AnalysisError(PipelineError):
    """Raised when the scoring backend call fails."""
    status_code = 502
