"""
Package mutation records as a JSONL variables file and start a bulk mutation.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from ..config import RATE_LIMIT_DELAY
from .errors import GraphQLError, SubmitError
from .models import MutationPlan, MutationRecord, SubmissionResult

logger = logging.getLogger(__name__)


def serialize_records(records: Iterable[MutationRecord]) -> str:
    """One self-contained productUpdate variables object per line."""
    return "\n".join(record.to_jsonl_line() for record in records)


def _user_error_message(user_errors: List[Dict[str, Any]], default: str) -> str:
    if user_errors:
        return str(user_errors[0].get("message") or default)
    return default


def _find_parameter(parameters: List[Dict[str, str]], name: str) -> Optional[str]:
    for param in parameters:
        if param.get("name") == name:
            return param.get("value")
    return None


def _is_form_parameter(param: Any) -> bool:
    return isinstance(param, dict) and isinstance(param.get("name"), str) and isinstance(param.get("value"), str)


def _request_staged_target(client) -> Dict[str, Any]:
    try:
        payload = client.create_staged_upload()
    except (requests.RequestException, GraphQLError) as exc:
        raise SubmitError(SubmitError.STAGED_UPLOAD, f"Failed to create staged upload: {exc}") from exc

    user_errors = payload.get("userErrors") or []
    if user_errors:
        raise SubmitError(
            SubmitError.STAGED_UPLOAD,
            _user_error_message(user_errors, "Failed to create staged upload"),
            user_errors,
        )

    targets = payload.get("stagedTargets") or []
    if not targets or not targets[0].get("url"):
        raise SubmitError(SubmitError.STAGED_UPLOAD, "Staged upload returned no target")
    return targets[0]


def _upload(client, target: Dict[str, Any], content: str) -> str:
    parameters = target.get("parameters") or []
    if not isinstance(parameters, list) or not all(_is_form_parameter(p) for p in parameters):
        raise SubmitError(SubmitError.UPLOAD, "Staged target parameters are malformed")
    key = _find_parameter(parameters, "key")
    if not key:
        raise SubmitError(SubmitError.UPLOAD, "Upload key not found in staged target parameters")

    try:
        client.upload_staged_file(target["url"], parameters, content)
    except requests.RequestException as exc:
        raise SubmitError(SubmitError.UPLOAD, f"Failed to upload JSONL file: {exc}") from exc
    except (KeyError, TypeError) as exc:
        raise SubmitError(SubmitError.UPLOAD, f"Malformed staged upload target: {exc!r}") from exc
    return key


def _start_bulk_run(client, staged_upload_path: str) -> str:
    try:
        payload = client.run_bulk_mutation(staged_upload_path)
    except (requests.RequestException, GraphQLError) as exc:
        raise SubmitError(SubmitError.BULK_RUN, f"Failed to create bulk operation: {exc}") from exc

    user_errors = payload.get("userErrors") or []
    if user_errors:
        message = _user_error_message(user_errors, "Unknown Shopify API error.")
        logger.error("Shopify bulk run error: %s", message)
        raise SubmitError(SubmitError.BULK_RUN, f"Failed to create bulk operation: {message}", user_errors)

    operation = payload.get("bulkOperation") or {}
    if not operation.get("id"):
        raise SubmitError(SubmitError.BULK_RUN, "Bulk operation was not created")
    return operation["id"]


def submit_job(
    client,
    plan: MutationPlan,
    delay: float = RATE_LIMIT_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> SubmissionResult:
    """
    Submit a mutation plan as one bulk operation.

    An empty plan is a successful no-op and returns no job id. Otherwise the
    records are uploaded to a staged target and the bulk mutation is started,
    waiting ``delay`` seconds between platform calls. Any failing step raises
    SubmitError and no job id is returned.
    """
    if plan.is_empty:
        logger.info("Nothing to submit for tag %r; skipping bulk operation", plan.summary.tag)
        return SubmissionResult(job_id=None, summary=plan.summary)

    content = serialize_records(plan.records)
    target = _request_staged_target(client)
    if delay > 0:
        sleep(delay)
    staged_upload_path = _upload(client, target, content)
    if delay > 0:
        sleep(delay)
    job_id = _start_bulk_run(client, staged_upload_path)

    logger.info(
        "Started bulk operation %s for %d product(s) (%s %r)",
        job_id, len(plan.records), plan.summary.action.value, plan.summary.tag,
    )
    return SubmissionResult(job_id=job_id, summary=plan.summary)
