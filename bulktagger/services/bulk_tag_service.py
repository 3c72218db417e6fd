import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..config import FETCH_PAGE_LIMIT, PREVIEW_COUNT, RATE_LIMIT_DELAY
from ..core.collector import collect_all
from ..core.errors import FetchError, PollError, SubmitError
from ..core.job_context import decode_job_context, encode_job_context, running_summary
from ..core.models import BulkOperationStatus, FilterCriteria, JobContext, Summary, TagAction
from ..core.planner import normalize_tag, plan_mutation
from ..core.poller import check_status, should_keep_polling
from ..core.query_builder import build_product_query
from ..core.results import fallback_summary, reconcile
from ..core.shopify_client import ShopifyClient
from ..core.submitter import submit_job

logger = logging.getLogger(__name__)


class BulkTagService:
    """Preview, start and track bulk tag runs against one shop."""

    def __init__(
        self,
        client: Optional[ShopifyClient] = None,
        page_size: int = FETCH_PAGE_LIMIT,
        page_delay: float = RATE_LIMIT_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client or ShopifyClient()
        self.page_size = page_size
        self.page_delay = page_delay
        self.sleep = sleep

    def _collect(self, query: str):
        return collect_all(
            self.client,
            query,
            page_size=self.page_size,
            delay=self.page_delay,
            sleep=self.sleep,
        )

    def preview(self, criteria: FilterCriteria, preview: bool = True) -> Dict[str, Any]:
        """
        Show the first products matching the filters and how many match in total.

        Cleared filters (or preview=False) are not an error: the payload simply
        has previewMode False and no products.
        """
        query = build_product_query(criteria)
        payload: Dict[str, Any] = {
            "products": [],
            "totalCount": 0,
            "filters": criteria.model_dump(),
            "previewMode": False,
            "error": None,
        }
        if not preview or not query:
            return payload

        try:
            products = self._collect(query)
        except FetchError as exc:
            logger.error("Preview failed for query %r: %s", query, exc)
            payload["error"] = str(exc)
            return payload

        payload.update(
            products=[p.model_dump() for p in products[:PREVIEW_COUNT]],
            totalCount=len(products),
            previewMode=True,
        )
        return payload

    def start(
        self,
        criteria: FilterCriteria,
        tag: str,
        action: Union[TagAction, str] = TagAction.APPLY,
    ) -> Dict[str, Any]:
        """
        Collect, plan and submit a bulk tag run.

        On success the payload carries the pre-run estimate and, when a job was
        started, ``jobParams`` for the caller to send back on each status check.
        """
        try:
            tag = normalize_tag(tag)
            action = TagAction(action)
        except ValueError as exc:
            return {"success": False, "error": str(exc)}

        query = build_product_query(criteria)
        if not query:
            return {"success": False, "error": "Please apply at least one filter before tagging."}

        try:
            products = self._collect(query)
        except FetchError as exc:
            logger.error("Product collection failed: %s", exc)
            return {"success": False, "error": f"Failed to fetch products: {exc}", "stage": "collect"}

        plan = plan_mutation(products, tag, action)
        if not products:
            return {
                "success": True,
                "error": None,
                "message": "No products found matching your filters.",
                "bulkOperationId": None,
                "preRunSummary": plan.summary.to_payload(),
            }

        try:
            submission = submit_job(self.client, plan, delay=self.page_delay, sleep=self.sleep)
        except SubmitError as exc:
            logger.error("Bulk operation error (%s): %s", exc.stage, exc)
            return {
                "success": False,
                "error": f"Failed to start bulk operation: {exc}",
                "stage": exc.stage,
            }

        payload: Dict[str, Any] = {
            "success": True,
            "error": None,
            "bulkOperationId": submission.job_id,
            "preRunSummary": submission.summary.to_payload(),
        }
        if submission.job_id:
            context = JobContext(
                total_filtered=submission.summary.total,
                total_processed=submission.summary.updated,
                tag=submission.summary.tag,
                action=submission.summary.action,
                job_id=submission.job_id,
            )
            payload["jobParams"] = encode_job_context(context)
        return payload

    def _idle(self, status: Optional[BulkOperationStatus] = None, error: Optional[str] = None) -> Dict[str, Any]:
        return {
            "success": error is None,
            "error": error,
            "keepPolling": False,
            "bulkOperationStatus": status.to_payload() if status else None,
            "summary": None,
            "finalSummary": None,
        }

    def _terminal_summary(self, status: BulkOperationStatus, context: JobContext) -> Summary:
        if status.is_completed:
            summary = reconcile(self.client, status, context)
            if summary is not None:
                return summary
            return fallback_summary(context, "Bulk operation completed without a result file.")

        detail = f" ({status.error_code})" if status.error_code else ""
        return fallback_summary(context, f"Bulk operation {status.status.lower()}{detail}.")

    def status(self, params: Mapping[str, str]) -> Dict[str, Any]:
        """
        One status check for the run described by ``params``.

        Undecodable context, no current operation, or an operation other than
        the one being tracked all mean "no active job": no summary is produced.
        """
        context = decode_job_context(params)
        if context is None:
            return self._idle()

        try:
            status = check_status(self.client)
        except PollError as exc:
            logger.warning("Status check failed, will retry on next poll: %s", exc)
            return {
                "success": False,
                "error": str(exc),
                "keepPolling": True,
                "bulkOperationStatus": None,
                "summary": running_summary(context).to_payload(),
                "finalSummary": None,
                "jobParams": encode_job_context(context),
            }

        if status is None:
            logger.warning("No current bulk operation found for job %s", context.job_id)
            return self._idle()

        if status.id != context.job_id:
            logger.warning("Current bulk operation %s is not the tracked job %s", status.id, context.job_id)
            return self._idle(status)

        if should_keep_polling(status):
            return {
                "success": True,
                "error": None,
                "keepPolling": True,
                "bulkOperationStatus": status.to_payload(),
                "summary": running_summary(context).to_payload(),
                "finalSummary": None,
                "jobParams": encode_job_context(context),
            }

        final = self._terminal_summary(status, context)
        return {
            "success": final.error is None,
            "error": final.error,
            "keepPolling": False,
            "bulkOperationStatus": status.to_payload(),
            "summary": final.to_payload(),
            "finalSummary": final.to_payload(),
        }
