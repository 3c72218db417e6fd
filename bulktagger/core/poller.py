"""
Single read of the shop's current bulk mutation operation.
"""

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from .errors import GraphQLError, PollError
from .models import BulkOperationStatus

logger = logging.getLogger(__name__)


def check_status(client) -> Optional[BulkOperationStatus]:
    """
    Return the current bulk mutation operation, or None if the shop has none.

    Performs exactly one request; the caller decides when to call again.
    """
    try:
        operation = client.get_current_bulk_operation()
    except (requests.RequestException, GraphQLError) as exc:
        raise PollError(f"Failed to check bulk operation status: {exc}") from exc

    if not operation:
        return None

    try:
        status = BulkOperationStatus(
            id=operation["id"],
            status=operation["status"],
            object_count=operation.get("objectCount"),
            url=operation.get("url"),
            error_code=operation.get("errorCode"),
            created_at=operation.get("createdAt"),
            completed_at=operation.get("completedAt"),
        )
    except (KeyError, TypeError, ValidationError) as exc:
        raise PollError(f"Unexpected bulk operation payload: {exc}") from exc

    logger.debug("Bulk operation %s is %s (%d objects)", status.id, status.status, status.object_count)
    return status


def should_keep_polling(status: Optional[BulkOperationStatus]) -> bool:
    return status is not None and not status.is_terminal
