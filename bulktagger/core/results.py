"""
Reconcile a completed bulk operation's JSONL result file into a final summary.
"""

import json
import logging
from typing import Any, Dict, Optional

import requests

from .errors import ReconcileDegraded
from .models import BulkOperationStatus, JobContext, Summary

logger = logging.getLogger(__name__)


def _mutation_payload(result: Dict[str, Any]) -> Dict[str, Any]:
    # Result lines nest the mutation under "data"; accept the bare form too
    data = result.get("data")
    if isinstance(data, dict) and isinstance(data.get("productUpdate"), dict):
        return data["productUpdate"]
    payload = result.get("productUpdate")
    return payload if isinstance(payload, dict) else {}


def classify_result_line(line: str) -> bool:
    """
    True when a result line reports a successful mutation.

    Unparsable lines, top-level errors and userErrors all count as failures.
    """
    try:
        result = json.loads(line)
    except ValueError:
        logger.warning("Error parsing result line: %.200s", line)
        return False

    if not isinstance(result, dict):
        return False
    if result.get("errors"):
        return False
    if _mutation_payload(result).get("userErrors"):
        return False
    return True


def summarize_results(content: str, context: JobContext) -> Summary:
    """
    Count successes and failures in the result file.

    Products that were never attempted are reported as skipped; drift that
    would make skipped negative is clamped to zero.
    """
    lines = [line for line in content.strip().splitlines() if line.strip()]
    if not lines and context.total_processed > 0:
        raise ReconcileDegraded(
            f"Result file is empty but {context.total_processed} record(s) were submitted"
        )

    updated = 0
    failed = 0
    for line in lines:
        if classify_result_line(line):
            updated += 1
        else:
            failed += 1

    attempted = updated + failed
    skipped = context.total_filtered - attempted
    total = context.total_filtered
    if skipped < 0:
        logger.warning(
            "Result file has %d line(s) but only %d product(s) matched; clamping skipped to 0",
            attempted, context.total_filtered,
        )
        skipped = 0
        total = attempted
    elif attempted != context.total_processed:
        logger.warning(
            "Bulk operation attempted %d record(s), %d were submitted",
            attempted, context.total_processed,
        )

    return Summary(
        updated=updated,
        failed=failed,
        skipped=skipped,
        total=total,
        tag=context.tag,
        action=context.action,
    )


def fallback_summary(context: JobContext, error: str) -> Summary:
    """Everything submitted is presumed failed; the error is always set."""
    return Summary(
        updated=0,
        failed=context.total_processed,
        skipped=context.total_filtered - context.total_processed,
        total=context.total_filtered,
        tag=context.tag,
        action=context.action,
        error=error or "Bulk operation results could not be processed.",
    )


def reconcile(client, status: Optional[BulkOperationStatus], context: JobContext) -> Optional[Summary]:
    """
    Final summary for a completed bulk operation.

    Returns None unless the operation is COMPLETED with a result URL. A failed
    download or unusable file yields the fallback summary instead of raising.
    Only reads; repeating it re-downloads the same file.
    """
    if status is None or not status.is_completed or not status.url:
        return None

    try:
        try:
            content = client.fetch_result_file(status.url)
        except requests.RequestException as exc:
            raise ReconcileDegraded(f"Failed to fetch bulk operation results file: {exc}") from exc
        summary = summarize_results(content, context)
    except ReconcileDegraded as exc:
        logger.error("Critical error processing bulk results for %s: %s", status.id, exc)
        return fallback_summary(context, str(exc))

    logger.info(
        "Bulk operation %s reconciled: %d updated, %d failed, %d skipped of %d",
        status.id, summary.updated, summary.failed, summary.skipped, summary.total,
    )
    return summary
