"""
Error taxonomy for the bulk tag pipeline.
"""

from typing import Any, Dict, List, Optional


class BulkTagError(Exception):
    """Base class for every error raised by the bulk tag pipeline."""


class GraphQLError(BulkTagError):
    """The Admin API answered with a top-level ``errors`` list."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors or []
        messages = [str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in self.errors]
        super().__init__(f"GraphQL errors: {'; '.join(messages) or 'unknown'}")


class FetchError(BulkTagError):
    """A product page or a result file could not be retrieved."""


class SubmitError(BulkTagError):
    """Starting the bulk job failed; no job exists for the caller to poll."""

    STAGED_UPLOAD = "staged_upload"
    UPLOAD = "upload"
    BULK_RUN = "bulk_run"

    def __init__(self, stage: str, message: str, user_errors: Optional[List[Dict[str, Any]]] = None):
        self.stage = stage
        self.user_errors = user_errors or []
        super().__init__(f"[{stage}] {message}")


class PollError(BulkTagError):
    """The bulk operation status query failed. Retry on the next poll."""


class ReconcileDegraded(BulkTagError):
    """Result content was unavailable or unusable as a whole."""
