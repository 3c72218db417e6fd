"""
Round-trip the state of an in-flight bulk job through request parameters.

No session is kept server side, so every status check carries the job id and
the counts needed to finish the run. Decoding fails closed: anything missing
or inconsistent means "no active job", never a guessed summary.
"""

import logging
from typing import Dict, Mapping, Optional

from pydantic import ValidationError

from .models import BulkOperationStatus, JobContext, Summary, TagAction

logger = logging.getLogger(__name__)

CHECK_STATUS_PARAM = "checkStatus"
JOB_ID_PARAM = "bulkOperationId"
TOTAL_FILTERED_PARAM = "totalFiltered"
TOTAL_PROCESSED_PARAM = "totalProcessed"
TAG_PARAM = "appliedTag"
ACTION_PARAM = "appliedAction"

CONTEXT_PARAMS = (
    CHECK_STATUS_PARAM,
    JOB_ID_PARAM,
    TOTAL_FILTERED_PARAM,
    TOTAL_PROCESSED_PARAM,
    TAG_PARAM,
    ACTION_PARAM,
)


def encode_job_context(context: JobContext, job_id: Optional[str] = None) -> Dict[str, str]:
    """Flatten a job context into string parameters for the next request."""
    params = {
        CHECK_STATUS_PARAM: "true",
        TOTAL_FILTERED_PARAM: str(context.total_filtered),
        TOTAL_PROCESSED_PARAM: str(context.total_processed),
        TAG_PARAM: context.tag,
        ACTION_PARAM: context.action.value,
    }
    job_id = job_id or context.job_id
    if job_id:
        params[JOB_ID_PARAM] = job_id
    return params


def _parse_count(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 0 else None


def decode_job_context(
    params: Mapping[str, str],
    status: Optional[BulkOperationStatus] = None,
) -> Optional[JobContext]:
    """
    Rebuild the job context from request parameters.

    Returns None when polling was not requested, when any of bulkOperationId,
    totalFiltered, totalProcessed or appliedTag is missing or invalid, or when
    the known status is already terminal.
    """
    if str(params.get(CHECK_STATUS_PARAM, "")).lower() != "true":
        return None

    total_filtered = _parse_count(params.get(TOTAL_FILTERED_PARAM))
    total_processed = _parse_count(params.get(TOTAL_PROCESSED_PARAM))
    tag = (params.get(TAG_PARAM) or "").strip()
    job_id = (params.get(JOB_ID_PARAM) or "").strip()
    if not job_id or total_filtered is None or total_processed is None or not tag:
        logger.warning("Ignoring incomplete job context parameters: %s", dict(params))
        return None

    raw_action = (params.get(ACTION_PARAM) or TagAction.APPLY.value).strip().lower()
    try:
        action = TagAction(raw_action)
    except ValueError:
        logger.warning("Ignoring job context with unknown action %r", raw_action)
        return None

    if status is not None and status.is_terminal:
        logger.debug("Bulk operation %s already %s; no active job", status.id, status.status)
        return None

    try:
        return JobContext(
            total_filtered=total_filtered,
            total_processed=total_processed,
            tag=tag,
            action=action,
            job_id=job_id,
        )
    except ValidationError as exc:
        logger.warning("Ignoring inconsistent job context: %s", exc)
        return None


def running_summary(context: JobContext) -> Summary:
    """Placeholder summary shown while the job is still running."""
    return Summary(
        updated=context.total_processed,
        failed=0,
        skipped=context.total_filtered - context.total_processed,
        total=context.total_filtered,
        tag=context.tag,
        action=context.action,
        estimated=True,
    )
